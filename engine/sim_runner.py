"""engine.sim_runner

Headless runner for quick sanity checks.

This keeps tests deterministic and CI-friendly by avoiding network calls.
It uses a tiny built-in scripted Oracle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from content.providers.base import ProviderStatus
from content.schemas import (
    CandidateRequest,
    PitchRequest,
    PitchResult,
    Story,
    StoryRequest,
    TurnRequest,
    candidates_from_llm,
    pitch_from_llm,
    story_from_llm,
    turn_outcome_from_llm,
)
from core.results import OracleUnavailable
from core.state import Candidate, IntelType, PlayerDecisions, TurnOutcome

from .config import EngineConfig
from .session import GameSession


def _default_turn_reply(request: TurnRequest) -> Dict[str, Any]:
    """Team power in, modest progress out. Same request, same reply."""
    updates = []
    revenue = 0
    for p in request.products:
        tp = p.team_power
        released = p.stage in ("RELEASE", "GROWTH", "MATURE")
        users = int(tp.marketing // 5) + (20 if released else 0)
        rev = users * 2 if released else 0
        revenue += rev
        updates.append(
            {
                "productId": p.id,
                "devProgressChange": 10 + int(tp.dev // 10),
                "qualityChange": 1 if tp.design > 0 else 0,
                "bugChange": 1 - int(tp.test // 20),
                "userChange": users,
                "revenueChange": rev,
            }
        )
    return {
        "narrative": f"Week {request.turn}: steady work at {request.company_name or 'the startup'}.",
        "cashChange": revenue - int(request.burn_rate),
        "userChange": sum(u["userChange"] for u in updates),
        "moraleChange": 0,
        "productUpdates": updates,
        "randomEvent": None,
        "skillXpEarned": {"management": 1},
    }


DEFAULT_CANDIDATES: List[Dict[str, Any]] = [
    {"name": "Linh Tran", "role": "Developer", "level": "Junior", "skill": 55, "salary": 300, "hireCost": 500, "bio": "Bootcamp grad."},
    {"name": "Sam Okafor", "role": "Designer", "level": "Senior", "skill": 70, "salary": 450, "hireCost": 900, "bio": "Ex-agency."},
    {"name": "Maya Ruiz", "role": "Tester", "level": "Junior", "skill": 45, "salary": 250, "hireCost": 300},
]


@dataclass
class ScriptedOracle:
    """Deterministic Oracle for tests and headless runs (no LLM).

    Scripted replies are raw dicts and go through the same validators as a
    real provider, so a malformed script behaves like a malformed model reply.
    """

    turn_replies: Dict[int, Any] = field(default_factory=dict)  # turn -> raw reply
    failing_turns: Set[int] = field(default_factory=set)
    pitch_reply: Optional[Mapping[str, Any]] = None
    candidate_replies: Optional[List[Any]] = None
    fail_all: bool = False
    calls: List[str] = field(default_factory=list)

    def _check(self, what: str) -> None:
        self.calls.append(what)
        if self.fail_all:
            raise OracleUnavailable(f"scripted outage ({what})")

    def status(self) -> ProviderStatus:
        return ProviderStatus(True, "scripted", "scripted", note="deterministic")

    def simulate_turn(self, request: TurnRequest) -> TurnOutcome:
        self._check("turn")
        if request.turn in self.failing_turns:
            raise OracleUnavailable(f"scripted failure on turn {request.turn}")
        raw = self.turn_replies.get(request.turn)
        return turn_outcome_from_llm(raw if raw is not None else _default_turn_reply(request))

    def evaluate_pitch(self, request: PitchRequest) -> PitchResult:
        self._check("pitch")
        raw = self.pitch_reply or {
            "accepted": request.users >= 100,
            "valuation": max(0, request.users) * 100,
            "equityDemanded": 20,
            "investmentAmount": max(0, request.users) * 20,
            "investorFeedback": "Show us traction." if request.users < 100 else "We like the growth.",
        }
        return pitch_from_llm(raw)

    def generate_candidates(self, request: CandidateRequest) -> List[Candidate]:
        self._check("candidates")
        raw = self.candidate_replies if self.candidate_replies is not None else DEFAULT_CANDIDATES
        return candidates_from_llm(raw, id_prefix=request.id_prefix)

    def initialize_story(self, request: StoryRequest) -> Story:
        self._check("story")
        return story_from_llm(
            {
                "marketContext": f"{request.industry} buyers are cautious this year.",
                "competitorName": "Global Corp",
                "initialFeedback": "Ship something small, fast.",
                "initialProductAnalysis": f"{request.product_name} solves a real problem.",
            }
        )

    def chat(self, *, employee_name: str, role: str, message: str) -> str:
        self._check("chat")
        return f"{employee_name} ({role}): Sure thing, boss."

    def advisor_insight(self, *, intel_type: IntelType, industry: str) -> str:
        self._check("intel")
        return f"{intel_type.value} outlook for {industry}: stable."


def run_headless_sim(turns: int = 12, *, oracle: Optional[Any] = None, config: Optional[EngineConfig] = None) -> Dict[str, Any]:
    """Run a deterministic simulation and return summary."""
    cfg = config or EngineConfig(base_seed=123)
    session = GameSession(oracle=oracle or ScriptedOracle(), config=cfg)

    started = session.start(company_name="Headless Labs", industry="TECH", product_name="Widget", product_description="A widget.")
    if not started.ok:
        raise RuntimeError(started.message)
    product_id = started.payload["product_id"]

    session.recruit("Developers and a tester")
    for cand in list(session.state.candidates):
        if session.hire(cand.id).ok:
            session.assign(cand.id, product_id)

    for _ in range(turns):
        if session.state.stage.value != "PLAYING":
            break
        session.end_turn(PlayerDecisions(strategy_note="Keep shipping."))

    return {
        "turns": len(session.turn_logs),
        "final": session.state,
        "logs": session.turn_logs,
        "export": session.export_run(),
    }
