"""
Tests for the policy functions (hire, fire, assign, upgrade, products, chat, intel).
"""

from dataclasses import replace

import pytest

from core.results import ActionError
from core.rules import (
    INTEL_COSTS,
    TRAIT_VOCABULARY,
    assign_employee,
    burn_rate,
    can_buy_intel,
    cheer_up_after_chat,
    create_product,
    fire_employee,
    hire_candidate,
    office_capacity,
    record_intel,
    upgrade_facility,
)
from core.state import GameStage, IntelType, ProductStage, default_start_state


class TestBurnRate:
    def test_salaries_plus_maintenance(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1", salary=300), make_employee("e2", salary=400)])
        # office 100 + server 50
        assert burn_rate(state) == 850

    def test_follows_roster(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1", salary=300)])
        assert burn_rate(state) == 450
        fired = fire_employee(state, "e1").state
        assert burn_rate(fired) == 150


class TestHire:
    def test_refused_when_cash_below_hire_cost(self, playing_state, make_candidate):
        state = replace(playing_state, cash=1000, candidates=[make_candidate(hire_cost=1500)])
        result = hire_candidate(state, "c1")

        assert not result.ok
        assert result.error is ActionError.INSUFFICIENT_FUNDS
        assert result.state is state
        assert result.state.employees == []

    def test_success_debits_and_consumes_candidate(self, playing_state, make_candidate):
        state = replace(playing_state, cash=2000, candidates=[make_candidate(hire_cost=500)])
        result = hire_candidate(state, "c1")

        assert result.ok
        new = result.state
        assert new.cash == 1500
        assert len(new.employees) == 1
        assert new.candidates == []

        emp = new.employees[0]
        assert emp.id == "c1"
        assert 80 <= emp.morale < 100
        assert 50 <= emp.loyalty < 100
        assert 1 <= len(emp.traits) <= 2
        assert set(emp.traits) <= set(TRAIT_VOCABULARY)
        assert emp.stress == 0
        assert emp.assigned_product_id is None

    def test_hire_rolls_are_replayable(self, playing_state, make_candidate):
        state = replace(playing_state, candidates=[make_candidate()])
        a = hire_candidate(state, "c1", base_seed=7).state.employees[0]
        b = hire_candidate(state, "c1", base_seed=7).state.employees[0]
        assert a == b

    def test_capacity_exceeded(self, playing_state, make_candidate, make_employee):
        staff = [make_employee(f"e{i}") for i in range(3)]
        state = replace(playing_state, cash=50_000, employees=staff, candidates=[make_candidate()])
        assert office_capacity(state) == 3

        result = hire_candidate(state, "c1")
        assert result.error is ActionError.CAPACITY_EXCEEDED
        assert result.state.employees == staff

    def test_unknown_candidate(self, playing_state):
        result = hire_candidate(playing_state, "nobody")
        assert result.error is ActionError.INVALID_ACTION

    def test_not_playing(self, make_candidate):
        state = replace(default_start_state(), candidates=[make_candidate()])
        result = hire_candidate(state, "c1")
        assert result.error is ActionError.INVALID_ACTION
        assert result.state is state


class TestFire:
    def test_removes_and_lowers_morale(self, playing_state, make_employee):
        state = replace(playing_state, morale=80, employees=[make_employee("e1", product_id="p1")])
        result = fire_employee(state, "e1")

        assert result.ok
        assert result.state.employees == []
        assert result.state.morale == 70
        assert result.state.products == state.products

    def test_morale_floor(self, playing_state, make_employee):
        state = replace(playing_state, morale=5, employees=[make_employee("e1")])
        assert fire_employee(state, "e1").state.morale == 0

    def test_unknown_employee(self, playing_state):
        result = fire_employee(playing_state, "ghost")
        assert result.error is ActionError.INVALID_ACTION
        assert result.state is playing_state


class TestAssign:
    def test_assign_and_clear(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1")])
        assigned = assign_employee(state, "e1", "p1")
        assert assigned.ok
        assert assigned.state.find_employee("e1").assigned_product_id == "p1"

        cleared = assign_employee(assigned.state, "e1", None)
        assert cleared.ok
        assert cleared.state.find_employee("e1").assigned_product_id is None

    def test_reassignment_requires_clearing_first(self, playing_state, make_employee):
        state = create_product(playing_state, "Second", product_id="p2").state
        state = replace(state, employees=[make_employee("e1", product_id="p1")])

        result = assign_employee(state, "e1", "p2")
        assert result.error is ActionError.INVALID_ACTION
        assert result.state.find_employee("e1").assigned_product_id == "p1"

        state = assign_employee(state, "e1", None).state
        assert assign_employee(state, "e1", "p2").state.find_employee("e1").assigned_product_id == "p2"

    def test_same_product_is_idempotent(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1", product_id="p1")])
        result = assign_employee(state, "e1", "p1")
        assert result.ok
        assert result.state == state

    def test_unknown_product_or_employee(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1")])
        assert assign_employee(state, "e1", "nope").error is ActionError.INVALID_ACTION
        assert assign_employee(state, "ghost", "p1").error is ActionError.INVALID_ACTION


class TestUpgrade:
    def test_two_upgrades_follow_geometric_law(self, playing_state):
        state = replace(playing_state, cash=100_000)
        state = upgrade_facility(state, "office").state
        state = upgrade_facility(state, "office").state

        office = state.find_facility("office")
        assert office.level == 3
        assert office.cost_to_upgrade == 20_000
        assert office.value == 27
        assert office.description == "Level 3 Facility"
        assert state.cash == 100_000 - 5_000 - 10_000

    def test_max_level_is_a_no_op(self, playing_state):
        maxed = [replace(f, level=f.max_level) if f.id == "server" else f for f in playing_state.facilities]
        state = replace(playing_state, cash=100_000, facilities=maxed)
        result = upgrade_facility(state, "server")

        assert not result.ok
        assert result.error is ActionError.INVALID_ACTION
        assert result.state is state

    def test_insufficient_cash_is_a_no_op(self, playing_state):
        state = replace(playing_state, cash=100)
        result = upgrade_facility(state, "office")
        assert result.error is ActionError.INSUFFICIENT_FUNDS
        assert result.state is state


class TestCreateProduct:
    def test_defaults(self, playing_state):
        result = create_product(playing_state, "Second")
        assert result.ok
        pid = result.payload["product_id"]
        assert pid == "prod-1-2"
        p = result.state.find_product(pid)
        assert p.stage is ProductStage.CONCEPT
        assert p.development_progress == 0
        assert (p.quality, p.market_fit) == (50, 50)
        assert (p.bugs, p.users, p.revenue) == (0, 0, 0)
        assert p.active_feedback == []

    def test_needs_a_name(self, playing_state):
        assert create_product(playing_state, "   ").error is ActionError.INVALID_ACTION


class TestChatAndIntel:
    def test_chat_lifts_morale_when_not_stressed(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1", morale=50, stress=10)])
        assert cheer_up_after_chat(state, "e1").find_employee("e1").morale == 52

    def test_chat_does_nothing_when_stressed(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1", morale=50, stress=75)])
        assert cheer_up_after_chat(state, "e1").find_employee("e1").morale == 50

    def test_chat_morale_capped(self, playing_state, make_employee):
        state = replace(playing_state, employees=[make_employee("e1", morale=99.5, stress=0)])
        assert cheer_up_after_chat(state, "e1").find_employee("e1").morale == 100

    def test_intel_refused_without_cash(self, playing_state):
        state = replace(playing_state, cash=400)
        assert can_buy_intel(state, IntelType.MARKET).error is ActionError.INSUFFICIENT_FUNDS

    def test_record_intel_debits_cost(self, playing_state):
        state = record_intel(playing_state, IntelType.COMPETITOR, "They are hiring.")
        assert state.cash == playing_state.cash - INTEL_COSTS[IntelType.COMPETITOR]
        assert state.intel[-1].content == "They are hiring."
        assert state.intel[-1].title == "Spy Report"
        assert state.stage is GameStage.PLAYING


@pytest.mark.parametrize("stage", [GameStage.SETUP, GameStage.GAME_OVER])
def test_roster_and_facility_changes_need_a_running_game(playing_state, make_employee, stage):
    state = replace(playing_state, stage=stage, cash=50_000, morale=80, employees=[make_employee("e1")])
    for result in (
        fire_employee(state, "e1"),
        assign_employee(state, "e1", "p1"),
        upgrade_facility(state, "office"),
    ):
        assert result.error is ActionError.INVALID_ACTION
        assert result.state is state
