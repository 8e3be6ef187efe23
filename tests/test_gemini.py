"""
Tests for the Gemini Oracle with a fake google-genai client (no network).
"""

import json
from types import SimpleNamespace

import pytest

from content.providers import gemini
from content.providers.gemini import GeminiOracle
from content.schemas import CandidateRequest, TurnRequest
from core.results import OracleUnavailable

TURN_JSON = json.dumps(
    {
        "narrative": "Shipped.",
        "cashChange": -800,
        "userChange": 4,
        "moraleChange": 1,
        "productUpdates": [],
    }
)

REQUEST = TurnRequest(
    turn=1,
    company_name="Acme",
    industry="TECH",
    cash=10_000,
    burn_rate=800,
    morale=80,
    products=[],
    rd_focus="Improve core features",
    marketing_focus="Content Marketing (SEO)",
    strategy_note="",
)


class FakeClients:
    """Scripted replies per API key. An Exception entry is raised instead of returned."""

    def __init__(self, replies_by_key):
        self.replies = {k: list(v) for k, v in replies_by_key.items()}
        self.calls = []

    def __call__(self, api_key):
        outer = self

        class _Models:
            def generate_content(self, *, model, contents, config):
                outer.calls.append({"key": api_key, "model": model, "config": dict(config), "prompt": contents})
                queue = outer.replies.get(api_key, [])
                reply = queue.pop(0) if queue else RuntimeError("quota")
                if isinstance(reply, Exception):
                    raise reply
                return SimpleNamespace(text=reply)

        return SimpleNamespace(models=_Models())


@pytest.fixture
def fake_clients(monkeypatch):
    def install(replies_by_key):
        fake = FakeClients(replies_by_key)
        monkeypatch.setattr(gemini.genai, "Client", fake)
        return fake

    return install


def test_no_key_is_unavailable():
    oracle = GeminiOracle.from_api_key_string("")
    assert not oracle.status().ok
    with pytest.raises(OracleUnavailable):
        oracle.simulate_turn(REQUEST)
    assert oracle.last_error == "No API key."


def test_valid_reply(fake_clients):
    fake = fake_clients({"k1": [TURN_JSON]})
    oracle = GeminiOracle(["k1"])
    outcome = oracle.simulate_turn(REQUEST)

    assert outcome.cash_change == -800
    assert fake.calls[0]["config"]["response_mime_type"] == "application/json"
    assert oracle.status().ok


def test_repair_pass(fake_clients):
    fake = fake_clients({"k1": ["narrative: shipped, cash: down", TURN_JSON]})
    oracle = GeminiOracle(["k1"])
    outcome = oracle.simulate_turn(REQUEST)

    assert outcome.narrative == "Shipped."
    assert len(fake.calls) == 2
    assert fake.calls[1]["config"]["temperature"] == pytest.approx(0.1)
    assert "BROKEN TEXT" in fake.calls[1]["prompt"]


def test_unrepairable_reply_raises(fake_clients):
    fake_clients({"k1": ["nope", "still nope"]})
    oracle = GeminiOracle(["k1"])
    with pytest.raises(OracleUnavailable):
        oracle.simulate_turn(REQUEST)
    assert oracle.last_error


def test_model_fallback(fake_clients):
    fake = fake_clients({"k1": [RuntimeError("404 model"), TURN_JSON]})
    oracle = GeminiOracle(["k1"], models=["m-old", "m-new"])
    oracle.simulate_turn(REQUEST)

    assert [c["model"] for c in fake.calls] == ["m-old", "m-new"]
    assert oracle.model_in_use == "m-new"


def test_key_rotation(fake_clients):
    fake = fake_clients({"k1": [], "k2": [TURN_JSON]})
    oracle = GeminiOracle.from_api_key_string("k1, k2", models=["m"])
    oracle.simulate_turn(REQUEST)

    assert [c["key"] for c in fake.calls] == ["k1", "k2"]
    assert oracle.api_keys[0] == "k2"


def test_everything_down(fake_clients):
    fake_clients({"k1": [], "k2": []})
    oracle = GeminiOracle.from_api_key_string("k1,k2", models=["m"])
    with pytest.raises(OracleUnavailable):
        oracle.simulate_turn(REQUEST)
    assert "quota" in oracle.last_error


def test_candidate_ids_come_from_request(fake_clients):
    batch = json.dumps(
        [{"name": "Ana", "role": "Developer", "level": "Senior", "skill": 70, "salary": 400, "hireCost": 600}]
    )
    fake_clients({"k1": [batch]})
    oracle = GeminiOracle(["k1"])
    cands = oracle.generate_candidates(CandidateRequest(industry="TECH", turn=2, job_description="dev", id_prefix="cand-2-1"))
    assert [c.id for c in cands] == ["cand-2-1-0"]


def test_chat_is_plain_text(fake_clients):
    fake = fake_clients({"k1": ["Working on it, boss."]})
    oracle = GeminiOracle(["k1"])
    assert oracle.chat(employee_name="Ana", role="Developer", message="Status?") == "Working on it, boss."
    assert "response_mime_type" not in fake.calls[0]["config"]
