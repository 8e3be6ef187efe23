"""
Pytest fixtures for Startup Tycoon tests.
"""

from dataclasses import replace
from typing import Callable, Optional

import pytest

from core.rules import create_product
from core.state import Candidate, Employee, GameStage, GameState, Level, Role, default_start_state
from engine.sim_runner import ScriptedOracle


@pytest.fixture
def playing_state() -> GameState:
    """A started company with one CONCEPT product 'p1' and nobody hired."""
    state = replace(default_start_state(), stage=GameStage.PLAYING, company_name="Acme")
    return create_product(state, "App", "Does things.", product_id="p1").state


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    def _make(cid: str = "c1", *, hire_cost: int = 500, salary: int = 300, role: Role = Role.DEVELOPER, skill: float = 50) -> Candidate:
        return Candidate(
            id=cid,
            name=f"Candidate {cid}",
            role=role,
            level=Level.JUNIOR,
            skill=skill,
            salary=salary,
            hire_cost=hire_cost,
        )

    return _make


@pytest.fixture
def make_employee() -> Callable[..., Employee]:
    def _make(
        eid: str = "e1",
        *,
        role: Role = Role.DEVELOPER,
        skill: float = 50,
        salary: int = 300,
        morale: float = 70,
        stress: float = 10,
        product_id: Optional[str] = None,
    ) -> Employee:
        return Employee(
            id=eid,
            name=f"Employee {eid}",
            role=role,
            level=Level.SENIOR,
            skill=skill,
            salary=salary,
            morale=morale,
            stress=stress,
            traits=["Loyal"],
            assigned_product_id=product_id,
        )

    return _make
