"""
core.rules
Economy / staffing rules:
- burn rate and capacity helpers
- hiring, firing, assignment
- facility upgrades
- product creation, intel purchase, chat morale

Every action returns an ActionResult. A refusal carries the input state
unchanged, so callers can never observe a partial effect.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from .results import ActionError, ActionResult
from .rng import roll_hire
from .state import (
    Employee,
    Facility,
    GameStage,
    GameState,
    IntelItem,
    IntelType,
    StatEffect,
    clamp,
    new_product,
)

TRAIT_VOCABULARY = [
    "Hard-working",
    "Lazy",
    "Loyal",
    "Touchy",
    "Ambitious",
    "Sociable",
    "Eccentric",
]

INTEL_COSTS = {
    IntelType.MARKET: 500,
    IntelType.COMPETITOR: 1200,
    IntelType.INTERNAL: 300,
}

INTEL_TITLES = {
    IntelType.MARKET: "Market Report",
    IntelType.COMPETITOR: "Spy Report",
    IntelType.INTERNAL: "Internal Audit",
}


def burn_rate(state: GameState) -> int:
    """Recurring per-turn cost. Always recomputed from the live roster."""
    salaries = sum(int(e.salary) for e in state.employees)
    maintenance = sum(int(f.maintenance_cost) for f in state.facilities)
    return int(salaries + maintenance)


def _capacity(state: GameState, effect: StatEffect) -> Optional[int]:
    values = [int(f.value) for f in state.facilities if f.stat_effect is effect]
    return max(values) if values else None


def office_capacity(state: GameState) -> Optional[int]:
    office = state.find_facility("office")
    if office is not None:
        return int(office.value)
    return _capacity(state, StatEffect.MAX_EMPLOYEES)


def user_capacity(state: GameState) -> Optional[int]:
    return _capacity(state, StatEffect.MAX_USERS)


def average_quality(state: GameState) -> float:
    if not state.products:
        return float(state.product_quality)
    return sum(float(p.quality) for p in state.products) / len(state.products)


def runway_turns(cash: float, burn: float) -> float:
    if burn <= 1:
        return 99.0
    return max(0.0, cash / burn)


def _not_playing(state: GameState) -> Optional[ActionResult]:
    if state.stage is not GameStage.PLAYING:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Game is {state.stage.value}, not playing.")
    return None


# -------------------------
# Staff
# -------------------------


def hire_candidate(state: GameState, candidate_id: str, *, base_seed: int = 42) -> ActionResult:
    """The only place an Employee is constructed."""
    refused = _not_playing(state)
    if refused:
        return refused

    cand = state.find_candidate(candidate_id)
    if cand is None:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Unknown candidate: {candidate_id}")

    cap = office_capacity(state)
    if cap is not None and len(state.employees) >= cap:
        return ActionResult.refuse(
            state,
            ActionError.CAPACITY_EXCEEDED,
            f"Office is full (max {cap}). Upgrade the office first.",
        )
    if state.cash < cand.hire_cost:
        return ActionResult.refuse(
            state,
            ActionError.INSUFFICIENT_FUNDS,
            f"Not enough cash for the signing fee (${cand.hire_cost:,}).",
        )

    roll = roll_hire(base_seed=base_seed, candidate_id=cand.id, turn=state.turn, vocabulary=TRAIT_VOCABULARY)
    emp = Employee(
        id=cand.id,
        name=cand.name,
        role=cand.role,
        level=cand.level,
        skill=float(cand.skill),
        salary=int(cand.salary),
        morale=float(roll.morale),
        stress=0.0,
        loyalty=float(roll.loyalty),
        traits=list(roll.traits),
        assigned_product_id=None,
        specific_skills=list(cand.specific_skills),
        quirk=cand.quirk,
        education=cand.education,
        background_story=cand.bio,
    )
    new_state = replace(
        state,
        cash=state.cash - cand.hire_cost,
        employees=[*state.employees, emp],
        candidates=[c for c in state.candidates if c.id != cand.id],
    )
    return ActionResult.success(new_state, f"Hired {emp.name}.", employee_id=emp.id)


def fire_employee(state: GameState, employee_id: str, *, morale_penalty: float = 10) -> ActionResult:
    refused = _not_playing(state)
    if refused:
        return refused
    if state.find_employee(employee_id) is None:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Unknown employee: {employee_id}")
    new_state = replace(
        state,
        employees=[e for e in state.employees if e.id != employee_id],
        morale=max(0.0, state.morale - morale_penalty),
    )
    return ActionResult.success(new_state, "Employee let go.")


def assign_employee(state: GameState, employee_id: str, product_id: Optional[str]) -> ActionResult:
    """Set or clear an employee's product.

    One product per employee: moving someone between products takes two calls
    (clear, then assign).
    """
    refused = _not_playing(state)
    if refused:
        return refused
    emp = state.find_employee(employee_id)
    if emp is None:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Unknown employee: {employee_id}")
    if product_id is not None:
        if state.find_product(product_id) is None:
            return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Unknown product: {product_id}")
        if emp.assigned_product_id == product_id:
            return ActionResult.success(state, "Already assigned.")
        if emp.assigned_product_id is not None:
            return ActionResult.refuse(
                state,
                ActionError.INVALID_ACTION,
                f"{emp.name} already works on another product. Unassign first.",
            )

    employees = [replace(e, assigned_product_id=product_id) if e.id == employee_id else e for e in state.employees]
    return ActionResult.success(replace(state, employees=employees))


# -------------------------
# Facilities / products
# -------------------------


def upgraded(f: Facility) -> Facility:
    """Cost doubles, capacity triples."""
    return replace(
        f,
        level=f.level + 1,
        cost_to_upgrade=f.cost_to_upgrade * 2,
        value=f.value * 3,
        description=f"Level {f.level + 1} Facility",
    )


def upgrade_facility(state: GameState, facility_id: str) -> ActionResult:
    refused = _not_playing(state)
    if refused:
        return refused
    fac = state.find_facility(facility_id)
    if fac is None:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Unknown facility: {facility_id}")
    if fac.level >= fac.max_level:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"{fac.name} is already at max level.")
    if state.cash < fac.cost_to_upgrade:
        return ActionResult.refuse(
            state,
            ActionError.INSUFFICIENT_FUNDS,
            f"Upgrade costs ${fac.cost_to_upgrade:,}.",
        )

    facilities = [upgraded(f) if f.id == facility_id else f for f in state.facilities]
    new_state = replace(state, cash=state.cash - fac.cost_to_upgrade, facilities=facilities)
    return ActionResult.success(new_state, f"{fac.name} upgraded.")


def create_product(state: GameState, name: str, description: str = "", *, product_id: Optional[str] = None) -> ActionResult:
    name = (name or "").strip()
    if not name:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, "Product needs a name.")
    pid = product_id or f"prod-{state.turn}-{len(state.products) + 1}"
    if state.find_product(pid) is not None:
        return ActionResult.refuse(state, ActionError.INVALID_ACTION, f"Duplicate product id: {pid}")
    product = new_product(pid, name, description)
    return ActionResult.success(replace(state, products=[*state.products, product]), product_id=pid)


# -------------------------
# Soft actions
# -------------------------


def cheer_up_after_chat(state: GameState, employee_id: str, *, stress_ceiling: float = 70, bonus: float = 2) -> GameState:
    """A chat lifts morale a little unless the employee is already burnt out."""
    employees: List[Employee] = []
    for e in state.employees:
        if e.id == employee_id and e.stress < stress_ceiling:
            e = replace(e, morale=clamp(e.morale + bonus, 0.0, 100.0))
        employees.append(e)
    return replace(state, employees=employees)


def can_buy_intel(state: GameState, intel_type: IntelType) -> ActionResult:
    cost = INTEL_COSTS[intel_type]
    if state.cash < cost:
        return ActionResult.refuse(state, ActionError.INSUFFICIENT_FUNDS, f"Report costs ${cost:,}.")
    return ActionResult.success(state, cost=cost)


def record_intel(state: GameState, intel_type: IntelType, content: str) -> GameState:
    cost = INTEL_COSTS[intel_type]
    item = IntelItem(
        id=f"intel-{state.turn}-{len(state.intel) + 1}",
        type=intel_type,
        title=INTEL_TITLES[intel_type],
        content=content,
        cost=cost,
    )
    return replace(state, cash=state.cash - cost, intel=[*state.intel, item])
