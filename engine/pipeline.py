"""engine.pipeline

Core turn flow (headless).

Responsibilities:
- Build the Oracle request from the live state (burn rate, team power per product)
- Obtain a TurnOutcome, substituting the fallback on any Oracle failure
- Apply the outcome: globals, products, stress drift, skill XP, terminal check
- Append history and advance the turn

The request and the apply step are separate so a session can re-read its
latest state after the Oracle call returns. This layer is UI-agnostic.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from core.lifecycle import advance
from core.rules import average_quality, burn_rate
from core.state import (
    Employee,
    GameStage,
    GameState,
    PlayerDecisions,
    PlayerSkills,
    Product,
    ProductUpdate,
    Role,
    SkillXp,
    TurnOutcome,
    clamp,
)

from content.schemas import ProductBrief, TeamPower, TurnRequest

from .config import EngineConfig
from .logging import turn_log

log = logging.getLogger(__name__)

GAME_OVER_REASON = "Bankrupt (debt exceeded $10k)."

FALLBACK_NARRATIVE = (
    "Sorry, the market simulator could not be reached this week. "
    "The team kept the lights on and the bills were paid."
)

# role -> TeamPower field
ROLE_POWER = {
    Role.DEVELOPER: "dev",
    Role.DESIGNER: "design",
    Role.MARKETER: "marketing",
    Role.TESTER: "test",
    Role.SALES: "sales",
    Role.MANAGER: "management",
}


def team_power(state: GameState, product_id: str) -> TeamPower:
    totals: Dict[str, float] = {}
    for e in state.employees:
        if e.assigned_product_id != product_id:
            continue
        key = ROLE_POWER.get(e.role)
        if key is None:
            continue
        totals[key] = totals.get(key, 0.0) + float(e.skill)
    return TeamPower(**totals)


def build_turn_request(state: GameState, decisions: PlayerDecisions) -> TurnRequest:
    products = [
        ProductBrief(
            id=p.id,
            name=p.name,
            stage=p.stage.value,
            quality=float(p.quality),
            bugs=int(p.bugs),
            users=int(p.users),
            team_power=team_power(state, p.id),
        )
        for p in state.products
    ]
    return TurnRequest(
        turn=int(state.turn),
        company_name=state.company_name,
        industry=state.industry,
        cash=float(state.cash),
        burn_rate=burn_rate(state),
        morale=float(state.morale),
        products=products,
        rd_focus=decisions.rd_focus,
        marketing_focus=decisions.marketing_focus,
        strategy_note=decisions.strategy_note,
        event_choice=decisions.event_choice or state.pending_event_choice,
        has_secretary=any(e.role is Role.SECRETARY for e in state.employees),
        competitor_name=state.competitor_name,
    )


def fallback_outcome(burn: int, *, morale_change: int = -2) -> TurnOutcome:
    return TurnOutcome(
        narrative=FALLBACK_NARRATIVE,
        cash_change=-int(burn),
        user_change=0,
        morale_change=int(morale_change),
        product_updates=[],
        random_event=None,
        advice="Check the system.",
    )


def request_outcome(oracle: Any, request: TurnRequest, config: Optional[EngineConfig] = None) -> Tuple[TurnOutcome, bool]:
    """Ask the Oracle for this turn. Returns (outcome, used_fallback).

    Never raises: transport, parse and validation failures all degrade to the
    fallback outcome so the turn always advances.
    """
    cfg = config or EngineConfig()
    try:
        return oracle.simulate_turn(request), False
    except Exception as e:  # Oracle is an external collaborator; any failure means fallback
        log.warning("Turn %s: oracle failed (%s: %s); using fallback outcome", request.turn, type(e).__name__, e)
        return fallback_outcome(request.burn_rate, morale_change=cfg.fallback_morale_change), True


def _apply_product_update(p: Product, u: ProductUpdate, feedback_limit: int) -> Product:
    stage, progress = advance(p.stage, p.development_progress, u.dev_progress_change)
    feedback = list(p.active_feedback)
    if u.new_feedback:
        feedback = [u.new_feedback, *feedback][:feedback_limit]
    return replace(
        p,
        stage=stage,
        development_progress=progress,
        quality=clamp(p.quality + u.quality_change, 0.0, 100.0),
        bugs=max(0, p.bugs + u.bug_change),
        users=max(0, p.users + u.user_change),
        revenue=max(0, p.revenue + u.revenue_change),
        active_feedback=feedback,
    )


def apply_product_updates(products: List[Product], updates: List[ProductUpdate], feedback_limit: int = 5) -> List[Product]:
    """Unmatched products are left alone; the first update per product wins."""
    by_id: Dict[str, ProductUpdate] = {}
    for u in updates:
        by_id.setdefault(u.product_id, u)
    return [_apply_product_update(p, by_id[p.id], feedback_limit) if p.id in by_id else p for p in products]


def drift_stress(employees: List[Employee], *, cash: float, management: int, config: EngineConfig) -> List[Employee]:
    out: List[Employee] = []
    for e in employees:
        stress = float(e.stress)
        if cash < 0:
            stress += config.stress_cash_penalty
        if e.assigned_product_id is not None:
            stress += config.stress_assignment_load
        stress -= config.stress_management_relief * management
        stress = clamp(stress, 0.0, 100.0)

        morale = float(e.morale)
        if stress > config.overwork_stress_threshold:
            morale = max(0.0, morale - config.overwork_morale_penalty)
        out.append(replace(e, stress=stress, morale=morale))
    return out


def add_skill_xp(skills: PlayerSkills, xp: Optional[SkillXp]) -> PlayerSkills:
    if xp is None:
        return skills
    return PlayerSkills(
        management=skills.management + max(0, xp.management),
        tech=skills.tech + max(0, xp.tech),
        charisma=skills.charisma + max(0, xp.charisma),
    )


def apply_turn_outcome(
    state: GameState,
    outcome: TurnOutcome,
    decisions: PlayerDecisions,
    config: Optional[EngineConfig] = None,
) -> GameState:
    """Fold one outcome into the state. Pure; cannot fail on well-typed input."""
    cfg = config or EngineConfig()

    # scalars (the top-level userChange is narrative only; users follow products)
    cash = state.cash + outcome.cash_change
    users = max(0, state.users + sum(u.user_change for u in outcome.product_updates))
    morale = clamp(state.morale + outcome.morale_change, 0.0, 100.0)

    products = apply_product_updates(state.products, outcome.product_updates, cfg.feedback_limit)
    employees = drift_stress(state.employees, cash=cash, management=state.player_skills.management, config=cfg)
    skills = add_skill_xp(state.player_skills, outcome.skill_xp_earned)

    stage = state.stage
    reason = state.game_over_reason
    if cash < cfg.game_over_cash_threshold:
        stage = GameStage.GAME_OVER
        reason = GAME_OVER_REASON

    entry = replace(outcome, decisions=decisions, kind="turn", turn=int(state.turn))
    new_state = replace(
        state,
        cash=cash,
        users=users,
        morale=morale,
        products=products,
        employees=employees,
        player_skills=skills,
        stage=stage,
        game_over_reason=reason,
        pending_event_choice=None,
        intel=[],
        history=[*state.history, entry],
        turn=state.turn + 1,
    )
    return replace(new_state, product_quality=average_quality(new_state))


def resolve_turn(
    *,
    state: GameState,
    oracle: Any,
    decisions: PlayerDecisions,
    config: Optional[EngineConfig] = None,
) -> Tuple[GameState, Dict[str, Any]]:
    """Resolve one turn end to end.

    Returns (new_state, turn_log).
    """
    cfg = config or EngineConfig()
    request = build_turn_request(state, decisions)
    outcome, used_fallback = request_outcome(oracle, request, cfg)
    new_state = apply_turn_outcome(state, outcome, decisions, cfg)
    return new_state, turn_log(
        before=state,
        after=new_state,
        burn=request.burn_rate,
        decisions=decisions,
        used_fallback=used_fallback,
    )
