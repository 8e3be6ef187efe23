"""
core.results
Refusal taxonomy for player actions.

A refused action is a value, not an exception: the caller gets the untouched
state back together with an error code it can show to the player. Only the
Oracle boundary raises (OracleUnavailable), and the resolvers recover from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .state import GameState


class ActionError(str, Enum):
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVALID_ACTION = "INVALID_ACTION"
    ORACLE_UNAVAILABLE = "ORACLE_UNAVAILABLE"


class OracleUnavailable(RuntimeError):
    """Transport or parse failure at the Oracle boundary."""


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    state: GameState
    error: Optional[ActionError] = None
    message: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, state: GameState, message: str = "", **payload: Any) -> "ActionResult":
        return cls(ok=True, state=state, message=message, payload=dict(payload))

    @classmethod
    def refuse(cls, state: GameState, error: ActionError, message: str) -> "ActionResult":
        return cls(ok=False, state=state, error=error, message=message)
