"""content.schemas

Contracts at the Oracle boundary:
- Requests: what the engine sends (TurnRequest, PitchRequest, CandidateRequest, StoryRequest).
- Replies: LLM JSON -> validated domain objects (TurnOutcome, PitchResult, Candidate list, Story).

Design choice:
The Oracle only proposes numbers and text. Folding them into GameState is the
engine's job, so anything that does not match the contract is rejected here
with ValueError and the engine substitutes its fallback.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from core.state import (
    Candidate,
    EventOption,
    EventType,
    InteractiveEvent,
    Level,
    ProductUpdate,
    Role,
    SkillXp,
    TurnOutcome,
    clamp,
)


def _as_int(x: Any, name: str) -> int:
    """Strict-ish integer coercion: numbers and numeric strings, never bools."""
    if isinstance(x, bool) or x is None:
        raise ValueError(f"{name} must be an integer, got {x!r}")
    if isinstance(x, int):
        return x
    if isinstance(x, float):
        if not math.isfinite(x):
            raise ValueError(f"{name} must be finite")
        return int(round(x))
    if isinstance(x, str):
        try:
            v = float(x.strip().replace(",", ""))
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {x!r}") from None
        if not math.isfinite(v):
            raise ValueError(f"{name} must be finite")
        return int(round(v))
    raise ValueError(f"{name} must be an integer, got {type(x).__name__}")


def _as_float(x: Any, name: str) -> float:
    if isinstance(x, bool) or x is None:
        raise ValueError(f"{name} must be a number, got {x!r}")
    try:
        v = float(x)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {x!r}") from None
    if not math.isfinite(v):
        raise ValueError(f"{name} must be finite")
    return v


def _as_str(x: Any, name: str) -> str:
    if not isinstance(x, str):
        raise ValueError(f"{name} must be a string")
    return x


def _opt_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _require(data: Mapping[str, Any], *keys: str) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")


# =========================
# Requests
# =========================


@dataclass(frozen=True)
class TeamPower:
    dev: float = 0.0
    design: float = 0.0
    marketing: float = 0.0
    test: float = 0.0
    sales: float = 0.0
    management: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "dev": self.dev,
            "design": self.design,
            "marketing": self.marketing,
            "test": self.test,
            "sales": self.sales,
            "management": self.management,
        }


@dataclass(frozen=True)
class ProductBrief:
    id: str
    name: str
    stage: str
    quality: float
    bugs: int
    users: int
    team_power: TeamPower

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "stage": self.stage,
            "currentStats": {"quality": self.quality, "bugs": self.bugs, "users": self.users},
            "teamPower": self.team_power.to_dict(),
        }


@dataclass(frozen=True)
class TurnRequest:
    turn: int
    company_name: str
    industry: str
    cash: float
    burn_rate: int
    morale: float
    products: List[ProductBrief]
    rd_focus: str
    marketing_focus: str
    strategy_note: str
    event_choice: Optional[str] = None
    has_secretary: bool = False
    competitor_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "companyName": self.company_name,
            "industry": self.industry,
            "cash": self.cash,
            "burnRate": self.burn_rate,
            "morale": self.morale,
            "products": [p.to_dict() for p in self.products],
            "rdFocus": self.rd_focus,
            "marketingFocus": self.marketing_focus,
            "strategyNote": self.strategy_note,
            "eventChoice": self.event_choice,
            "hasSecretary": self.has_secretary,
            "competitorName": self.competitor_name,
        }


@dataclass(frozen=True)
class PitchRequest:
    company_name: str
    funding_round: str
    cash: float
    users: int
    headcount: int
    portfolio: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CandidateRequest:
    industry: str
    turn: int
    job_description: str
    id_prefix: str


@dataclass(frozen=True)
class StoryRequest:
    company_name: str
    industry: str
    product_name: str
    product_description: str


# =========================
# Turn reply
# =========================


def product_update_from_llm(obj: Any) -> ProductUpdate:
    if not isinstance(obj, Mapping):
        raise ValueError("productUpdates entries must be objects")
    _require(obj, "productId", "devProgressChange", "qualityChange", "bugChange", "userChange", "revenueChange")
    return ProductUpdate(
        product_id=str(obj["productId"]),
        dev_progress_change=_as_int(obj["devProgressChange"], "devProgressChange"),
        quality_change=_as_int(obj["qualityChange"], "qualityChange"),
        bug_change=_as_int(obj["bugChange"], "bugChange"),
        user_change=_as_int(obj["userChange"], "userChange"),
        revenue_change=_as_int(obj["revenueChange"], "revenueChange"),
        new_feedback=_opt_str(obj.get("newFeedback")),
    )


def event_from_llm(obj: Any) -> Optional[InteractiveEvent]:
    if obj is None:
        return None
    if not isinstance(obj, Mapping):
        raise ValueError("randomEvent must be an object or null")
    _require(obj, "title", "description", "type", "options")
    kind = str(obj["type"]).strip().lower()
    try:
        event_type = EventType(kind)
    except ValueError:
        raise ValueError(f"randomEvent.type invalid: {kind!r}") from None
    raw_opts = obj["options"]
    if not isinstance(raw_opts, list):
        raise ValueError("randomEvent.options must be a list")
    options: List[EventOption] = []
    for o in raw_opts:
        if not isinstance(o, Mapping):
            raise ValueError("randomEvent.options entries must be objects")
        _require(o, "label", "risk")
        options.append(EventOption(label=_as_str(o["label"], "label"), risk=str(o["risk"])))
    return InteractiveEvent(
        title=_as_str(obj["title"], "randomEvent.title"),
        description=_as_str(obj["description"], "randomEvent.description"),
        type=event_type,
        options=options,
    )


def skill_xp_from_llm(obj: Any) -> Optional[SkillXp]:
    if obj is None:
        return None
    if not isinstance(obj, Mapping):
        raise ValueError("skillXpEarned must be an object or null")
    return SkillXp(
        management=_as_int(obj.get("management", 0) or 0, "management"),
        tech=_as_int(obj.get("tech", 0) or 0, "tech"),
        charisma=_as_int(obj.get("charisma", 0) or 0, "charisma"),
    )


def turn_outcome_from_llm(data: Mapping[str, Any]) -> TurnOutcome:
    """Validate a turn reply. Raises ValueError on anything malformed."""
    if not isinstance(data, Mapping):
        raise ValueError("turn reply must be an object")
    _require(data, "narrative", "cashChange", "userChange", "moraleChange", "productUpdates")

    updates = data["productUpdates"]
    if not isinstance(updates, list):
        raise ValueError("productUpdates must be a list")

    return TurnOutcome(
        narrative=_as_str(data["narrative"], "narrative"),
        cash_change=_as_int(data["cashChange"], "cashChange"),
        user_change=_as_int(data["userChange"], "userChange"),
        morale_change=_as_int(data["moraleChange"], "moraleChange"),
        equity_change=_as_float(data.get("equityChange", 0) or 0, "equityChange"),
        product_updates=[product_update_from_llm(u) for u in updates],
        random_event=event_from_llm(data.get("randomEvent")),
        skill_xp_earned=skill_xp_from_llm(data.get("skillXpEarned")),
        secretary_report=_opt_str(data.get("secretaryReport")),
        competitor_update=str(data.get("competitorUpdate", "") or ""),
        advice=str(data.get("advice", "") or ""),
    )


# =========================
# Pitch reply
# =========================


@dataclass(frozen=True)
class PitchResult:
    accepted: bool
    valuation: int
    equity_demanded: float  # percent, 0..100
    investment_amount: int
    investor_feedback: str


def pitch_from_llm(data: Mapping[str, Any]) -> PitchResult:
    if not isinstance(data, Mapping):
        raise ValueError("pitch reply must be an object")
    _require(data, "accepted", "valuation", "equityDemanded", "investmentAmount", "investorFeedback")
    accepted = data["accepted"]
    if isinstance(accepted, str) and accepted.strip().lower() in {"true", "false"}:
        accepted = accepted.strip().lower() == "true"
    if not isinstance(accepted, bool):
        raise ValueError("accepted must be a boolean")
    investment = _as_int(data["investmentAmount"], "investmentAmount")
    if investment < 0:
        raise ValueError("investmentAmount must be >= 0")
    return PitchResult(
        accepted=accepted,
        valuation=_as_int(data["valuation"], "valuation"),
        equity_demanded=clamp(_as_float(data["equityDemanded"], "equityDemanded"), 0.0, 100.0),
        investment_amount=investment,
        investor_feedback=str(data["investorFeedback"] or ""),
    )


# =========================
# Candidates reply
# =========================


def _normalize_role(x: Any) -> Role:
    s = str(x or "").strip().lower()
    for r in Role:
        if r.value.lower() == s:
            return r
    raise ValueError(f"role invalid: {x!r}")


def _normalize_level(x: Any) -> Level:
    s = str(x or "").strip().lower()
    for lv in Level:
        if lv.value.lower() == s:
            return lv
    raise ValueError(f"level invalid: {x!r}")


def _normalize_skills(x: Any) -> List[str]:
    if isinstance(x, str):
        return [p.strip() for p in x.split(",") if p.strip()]
    if isinstance(x, list):
        return [str(p).strip() for p in x if str(p or "").strip()]
    return []


def candidate_from_llm(obj: Mapping[str, Any], *, candidate_id: str) -> Candidate:
    _require(obj, "name", "role", "level", "skill", "salary", "hireCost")
    exp = obj.get("experienceYears")
    return Candidate(
        id=candidate_id,
        name=_as_str(obj["name"], "name").strip(),
        role=_normalize_role(obj["role"]),
        level=_normalize_level(obj["level"]),
        skill=clamp(_as_float(obj["skill"], "skill"), 0.0, 100.0),
        salary=max(0, _as_int(obj["salary"], "salary")),
        hire_cost=max(0, _as_int(obj["hireCost"], "hireCost")),
        bio=str(obj.get("bio", "") or ""),
        match_analysis=str(obj.get("matchAnalysis", "") or ""),
        quirk=str(obj.get("quirk", "") or ""),
        education=str(obj.get("education") or "Self-taught"),
        experience_years=1 if exp is None else max(0, _as_int(exp, "experienceYears")),
        interview_notes=str(obj.get("interviewNotes") or "Candidate seemed eager."),
        specific_skills=_normalize_skills(obj.get("specificSkills")),
    )


def candidates_from_llm(data: Any, *, id_prefix: str) -> List[Candidate]:
    """Parse a candidate batch. Entries that break the contract are skipped."""
    if isinstance(data, Mapping):
        data = data.get("candidates", [])
    if not isinstance(data, list):
        raise ValueError("candidates reply must be an array")
    out: List[Candidate] = []
    for i, obj in enumerate(data):
        if not isinstance(obj, Mapping):
            continue
        try:
            out.append(candidate_from_llm(obj, candidate_id=f"{id_prefix}-{i}"))
        except ValueError:
            continue
    return out


# =========================
# Story reply (game start)
# =========================


@dataclass(frozen=True)
class Story:
    market_context: str
    competitor_name: str
    initial_feedback: str
    initial_product_analysis: str


FALLBACK_STORY = Story(
    market_context="The market is volatile.",
    competitor_name="Global Corp",
    initial_feedback="Tread carefully.",
    initial_product_analysis="An interesting product.",
)


def story_from_llm(data: Mapping[str, Any]) -> Story:
    if not isinstance(data, Mapping):
        raise ValueError("story reply must be an object")
    _require(data, "marketContext", "competitorName", "initialFeedback", "initialProductAnalysis")
    return Story(
        market_context=_as_str(data["marketContext"], "marketContext"),
        competitor_name=_as_str(data["competitorName"], "competitorName"),
        initial_feedback=_as_str(data["initialFeedback"], "initialFeedback"),
        initial_product_analysis=_as_str(data["initialProductAnalysis"], "initialProductAnalysis"),
    )
