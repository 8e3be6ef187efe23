"""content.providers.base

Oracle interface.

An Oracle turns a structured request into a validated reply (TurnOutcome,
PitchResult, candidates, story, short texts). It never touches GameState.
Any transport, parse or validation failure is raised as OracleUnavailable
(or ValueError from the schemas); the engine owns the fallbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from core.state import Candidate, IntelType, TurnOutcome

from ..schemas import CandidateRequest, PitchRequest, PitchResult, Story, StoryRequest, TurnRequest


@dataclass(frozen=True)
class ProviderStatus:
    ok: bool
    backend: str
    model: str
    note: str = ""
    error: str = ""


class Oracle(Protocol):
    def status(self) -> ProviderStatus: ...

    def simulate_turn(self, request: TurnRequest) -> TurnOutcome: ...

    def evaluate_pitch(self, request: PitchRequest) -> PitchResult: ...

    def generate_candidates(self, request: CandidateRequest) -> List[Candidate]:
        """Candidate ids come from request.id_prefix, never from the model."""
        ...

    def initialize_story(self, request: StoryRequest) -> Story: ...

    def chat(self, *, employee_name: str, role: str, message: str) -> str: ...

    def advisor_insight(self, *, intel_type: IntelType, industry: str) -> str: ...
