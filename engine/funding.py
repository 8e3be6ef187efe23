"""engine.funding

Funding / pitch flow.

A pitch never consumes a turn and never touches products or employees. It
only moves cash, equity and morale, and leaves a history entry.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from core.state import GameState, TurnOutcome, clamp

from content.schemas import PitchRequest, PitchResult

from .config import EngineConfig

log = logging.getLogger(__name__)

FUNDING_ROUNDS: List[str] = [
    "Seed Round ($200k)",
    "Series A ($1M)",
    "Series B ($5M)",
]

UNREACHABLE_FEEDBACK = "Could not reach the investors."


def build_pitch_request(state: GameState, funding_round: str) -> PitchRequest:
    portfolio = [
        f"- {p.name} ({p.stage.label}): quality {p.quality:.0f}/100, {p.users} users, ${p.revenue:,}/week revenue"
        for p in state.products
    ]
    return PitchRequest(
        company_name=state.company_name,
        funding_round=str(funding_round),
        cash=float(state.cash),
        users=int(state.users),
        headcount=len(state.employees),
        portfolio=portfolio,
    )


def rejected_pitch(feedback: str = UNREACHABLE_FEEDBACK) -> PitchResult:
    return PitchResult(
        accepted=False,
        valuation=0,
        equity_demanded=0.0,
        investment_amount=0,
        investor_feedback=feedback,
    )


def request_pitch(oracle: Any, request: PitchRequest) -> Tuple[PitchResult, bool]:
    """Returns (result, used_fallback). An unreachable Oracle reads as a 'no'."""
    try:
        return oracle.evaluate_pitch(request), False
    except Exception as e:  # Oracle is an external collaborator; any failure means fallback
        log.warning("Pitch for %r: oracle failed (%s: %s); treating as rejected", request.funding_round, type(e).__name__, e)
        return rejected_pitch(), True


def apply_pitch_result(
    state: GameState,
    result: PitchResult,
    funding_round: str,
    config: Optional[EngineConfig] = None,
) -> GameState:
    cfg = config or EngineConfig()

    if result.accepted:
        equity = max(0.0, state.equity - result.equity_demanded)
        morale = clamp(state.morale + cfg.pitch_accept_morale_bonus, 0.0, 100.0)
        entry = TurnOutcome(
            narrative=(
                f"{funding_round} closed: ${result.investment_amount:,} for {result.equity_demanded:g}% "
                f"(valuation ${result.valuation:,}). {result.investor_feedback}"
            ).strip(),
            cash_change=int(result.investment_amount),
            morale_change=int(morale - state.morale),
            equity_change=equity - state.equity,
            kind="funding",
            turn=int(state.turn),
        )
        return replace(
            state,
            cash=state.cash + result.investment_amount,
            equity=equity,
            morale=morale,
            history=[*state.history, entry],
        )

    morale = max(0.0, state.morale - cfg.pitch_reject_morale_penalty)
    entry = TurnOutcome(
        narrative=f"{funding_round} rejected. {result.investor_feedback}".strip(),
        morale_change=int(morale - state.morale),
        kind="funding",
        turn=int(state.turn),
    )
    return replace(state, morale=morale, history=[*state.history, entry])


def resolve_pitch(
    *,
    state: GameState,
    oracle: Any,
    funding_round: str,
    config: Optional[EngineConfig] = None,
) -> Tuple[GameState, PitchResult]:
    result, _ = request_pitch(oracle, build_pitch_request(state, funding_round))
    return apply_pitch_result(state, result, funding_round, config), result
