"""
core.industries
Industry presets (narrative tone + oracle temperature).

Kept in core so balancing lives in one place, but UI can still display labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class IndustrySpec:
    key: str
    label: str
    desc: str
    tone: str
    temp: float


DEFAULT_INDUSTRIES: Dict[str, IndustrySpec] = {
    "TECH": IndustrySpec(
        key="TECH",
        label="Technology (SaaS)",
        desc="Subscription software. Fast iteration, brutal churn.",
        tone="pragmatic, metric-driven, slightly sardonic",
        temp=0.8,
    ),
    "HEALTH": IndustrySpec(
        key="HEALTH",
        label="Health & BioTech",
        desc="Long cycles, regulators, and patients who cannot afford bugs.",
        tone="careful, compliance-aware, high stakes",
        temp=0.7,
    ),
    "AI": IndustrySpec(
        key="AI",
        label="Artificial Intelligence",
        desc="Hype, GPU bills, and a new competitor every week.",
        tone="fast, hype-aware, skeptical of demos",
        temp=0.9,
    ),
    "EDTECH": IndustrySpec(
        key="EDTECH",
        label="Education Tech",
        desc="Seasonal demand, school budgets, teachers as gatekeepers.",
        tone="warm but realistic about sales cycles",
        temp=0.75,
    ),
    "FMCG": IndustrySpec(
        key="FMCG",
        label="Consumer Goods (FMCG)",
        desc="Thin margins, retail shelf fights, brand is everything.",
        tone="street-smart, margin-obsessed",
        temp=0.8,
    ),
}


def get_industry_spec(key: str) -> IndustrySpec:
    return DEFAULT_INDUSTRIES.get(str(key or "").upper(), DEFAULT_INDUSTRIES["TECH"])
