"""
engine.selfcheck
Minimal "it runs" proof for the turn reducer.

Plays 12 turns with hand-written outcomes through apply_turn_outcome (no
Oracle), asserting the invariants that must hold after every turn, then one
ruinous turn that has to end the game.

Run:
  python -m engine.selfcheck
"""

from __future__ import annotations

from dataclasses import replace

from core.rules import assign_employee, burn_rate, create_product, hire_candidate, upgrade_facility
from core.state import (
    Candidate,
    GameStage,
    GameState,
    Level,
    PlayerDecisions,
    ProductUpdate,
    Role,
    SkillXp,
    TurnOutcome,
    default_start_state,
)

from .config import EngineConfig
from .pipeline import GAME_OVER_REASON, apply_turn_outcome


def _check(state: GameState) -> None:
    assert 0.0 <= state.morale <= 100.0
    assert state.users >= 0
    assert state.users == sum(p.users for p in state.products)
    assert len(state.history) == state.turn - 1
    product_ids = {p.id for p in state.products}
    for p in state.products:
        assert 0.0 <= p.quality <= 100.0
        assert 0.0 <= p.development_progress <= 100.0
        assert p.bugs >= 0 and p.users >= 0 and p.revenue >= 0
        assert len(p.active_feedback) <= 5
    for e in state.employees:
        assert e.assigned_product_id is None or e.assigned_product_id in product_ids
        assert 0.0 <= e.stress <= 100.0
        assert 0.0 <= e.morale <= 100.0


def _outcome(t: int, burn: int) -> TurnOutcome:
    update = ProductUpdate(
        product_id="p1",
        dev_progress_change=-60 if t == 5 else 35,  # week 5 is a setback
        quality_change=90 if t == 7 else 3,
        bug_change=1 if t % 2 else -2,
        user_change=10 * t,
        new_feedback=f"Week {t} feedback",
    )
    return TurnOutcome(
        narrative=f"Week {t}.",
        cash_change=-burn,
        morale_change=-1,
        product_updates=[update],
        skill_xp_earned=SkillXp(management=1),
    )


def run_12_turns_smoke() -> GameState:
    cfg = EngineConfig()
    state = replace(default_start_state(), stage=GameStage.PLAYING, company_name="Selfcheck Inc")
    state = create_product(state, "Core App", product_id="p1").state
    state = replace(
        state,
        candidates=[Candidate(id="c1", name="Dev", role=Role.DEVELOPER, level=Level.SENIOR, skill=60, salary=400, hire_cost=800)],
    )
    state = hire_candidate(state, "c1").state
    state = assign_employee(state, "c1", "p1").state
    state = upgrade_facility(state, "server").state
    _check(state)

    start_management = state.player_skills.management
    seen_stages = []
    for t in range(1, 13):
        state = apply_turn_outcome(state, _outcome(t, burn_rate(state)), PlayerDecisions(), cfg)
        seen_stages.append(state.products[0].stage.order)
        _check(state)
        assert state.turn == t + 1
        assert state.stage is GameStage.PLAYING

    # stages never regress
    assert seen_stages == sorted(seen_stages)
    assert state.player_skills.management == start_management + 12

    ruined = apply_turn_outcome(state, TurnOutcome(narrative="Lawsuit.", cash_change=-50_000), PlayerDecisions(), cfg)
    assert ruined.stage is GameStage.GAME_OVER
    assert ruined.game_over_reason == GAME_OVER_REASON

    print("OK: 12-turn smoke test passed.")
    print("Final:", {"cash": state.cash, "stage": state.products[0].stage.value, "burn": burn_rate(state)})
    return state


if __name__ == "__main__":
    run_12_turns_smoke()
