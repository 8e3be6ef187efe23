"""
Smoke tests: turn reducer selfcheck, headless sim, state serialization.
"""

import json

import pytest

from core.state import GameStage, ProductStage, default_start_state, state_from_dict, state_to_dict
from engine.logging import load_run_export
from engine.selfcheck import run_12_turns_smoke
from engine.session import GameSession
from engine.sim_runner import ScriptedOracle, run_headless_sim


def test_reducer_selfcheck_runs():
    state = run_12_turns_smoke()
    assert state.turn == 13
    assert len(state.history) == 12
    # the week-5 setback costs a stage: CONCEPT -> MVP -> ALPHA -> RELEASE
    assert state.products[0].stage is ProductStage.RELEASE
    assert state.products[0].quality == 100


def test_headless_sim_is_deterministic():
    a = run_headless_sim(12)
    b = run_headless_sim(12)
    assert a["turns"] == 12
    assert a["export"] == b["export"]
    assert a["final"].stage is GameStage.PLAYING
    assert len(a["final"].employees) == 3


def test_headless_sim_survives_total_outage():
    run = run_headless_sim(5, oracle=ScriptedOracle(fail_all=True))
    assert run["turns"] == 5
    assert all(log["used_fallback"] for log in run["logs"])
    # no story, no candidates: only the founding product and an empty office
    assert run["final"].employees == []


def test_state_dict_round_trip():
    state = run_headless_sim(6)["final"]
    assert state_from_dict(state_to_dict(state)) == state


def test_default_state_round_trip():
    state = default_start_state()
    assert state_from_dict(state_to_dict(state)) == state


def test_load_run_export_rejects_foreign_files():
    with pytest.raises(ValueError):
        load_run_export('{"hello": "world"}')
    with pytest.raises(ValueError):
        load_run_export('{"version": 99, "state": {}}')


def test_reexport_keeps_initial_snapshot():
    first = json.loads(run_headless_sim(3)["export"])
    loaded = GameSession.from_export(json.dumps(first), oracle=ScriptedOracle())
    second = json.loads(loaded.export_run())

    assert second["initial_state"] == first["initial_state"]
    assert second["state"] == first["state"]
    assert loaded.initial_state.turn == 1


def test_export_without_initial_snapshot_starts_from_state():
    run = json.loads(run_headless_sim(2)["export"])
    del run["initial_state"]
    _, initial, state, _ = load_run_export(json.dumps(run))
    assert initial == state


def test_corrupt_history_is_a_value_error():
    run = json.loads(run_headless_sim(1)["export"])
    run["state"]["history"] = ["not an entry"]
    with pytest.raises(ValueError, match="Corrupt run export"):
        GameSession.from_export(json.dumps(run), oracle=ScriptedOracle())
