"""engine.logging

Small helpers for storing run logs.

A run log is JSON-serializable so it can be exported/imported later.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple

from core.state import GameState, PlayerDecisions, state_from_dict, state_to_dict

EXPORT_VERSION = 1


def stats_snapshot(state: GameState) -> Dict[str, Any]:
    return {
        "cash": float(state.cash),
        "users": int(state.users),
        "morale": float(state.morale),
        "equity": float(state.equity),
        "turn": int(state.turn),
        "employees": len(state.employees),
        "stage": state.stage.value,
    }


def stage_transitions(before: GameState, after: GameState) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for p in after.products:
        prev = before.find_product(p.id)
        if prev is not None and prev.stage is not p.stage:
            out.append({"product_id": p.id, "from": prev.stage.value, "to": p.stage.value})
    return out


def turn_log(
    *,
    before: GameState,
    after: GameState,
    burn: int,
    decisions: Optional[PlayerDecisions],
    used_fallback: bool,
) -> Dict[str, Any]:
    return {
        "turn": int(before.turn),
        "before": stats_snapshot(before),
        "after": stats_snapshot(after),
        "burn_rate": int(burn),
        "decisions": asdict(decisions) if decisions is not None else None,
        "used_fallback": bool(used_fallback),
        "stage_transitions": stage_transitions(before, after),
    }


def make_run_export(
    *,
    seed: int,
    config: Dict[str, Any],
    initial_state: GameState,
    state: GameState,
    turn_logs: List[Dict[str, Any]],
) -> Dict[str, Any]:
    return {
        "version": EXPORT_VERSION,
        "seed": int(seed),
        "config": dict(config),
        "initial_state": state_to_dict(initial_state),
        "state": state_to_dict(state),
        "turn_logs": list(turn_logs),
    }


def dumps_run_export(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True)


def load_run_export(text: str) -> Tuple[Dict[str, Any], GameState, GameState, List[Dict[str, Any]]]:
    """Inverse of dumps_run_export: (config dict, initial state, current state, turn logs).

    Files without an initial snapshot start from the current state.
    """
    obj = json.loads(text)
    if not isinstance(obj, dict) or "state" not in obj:
        raise ValueError("Not a run export: missing 'state'.")
    version = int(obj.get("version", 0))
    if version != EXPORT_VERSION:
        raise ValueError(f"Unsupported run export version: {version}")
    try:
        state = state_from_dict(obj["state"])
        initial = state_from_dict(obj["initial_state"]) if obj.get("initial_state") else state
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Corrupt run export: {type(e).__name__}: {e}") from e
    return dict(obj.get("config") or {}), initial, state, list(obj.get("turn_logs") or [])
