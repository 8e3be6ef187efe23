"""engine.config

Engine configuration passed from UI.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class EngineConfig:
    base_seed: int = 42
    industry_key: str = "TECH"

    recruitment_cost: int = 500
    fire_morale_penalty: float = 10
    pitch_accept_morale_bonus: float = 10
    pitch_reject_morale_penalty: float = 5
    game_over_cash_threshold: float = -10_000
    feedback_limit: int = 5

    # fallback turn
    fallback_morale_change: int = -2

    # stress drift
    stress_cash_penalty: float = 5
    stress_assignment_load: float = 2
    stress_management_relief: float = 0.5
    overwork_stress_threshold: float = 80
    overwork_morale_penalty: float = 5

    chat_stress_ceiling: float = 70
    chat_morale_bonus: float = 2

    # oracle
    temperature: float = 0.8
    max_output_tokens: int = 2200

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "EngineConfig":
        known = {k: v for k, v in (d or {}).items() if k in EngineConfig.__dataclass_fields__}
        return EngineConfig(**known)
