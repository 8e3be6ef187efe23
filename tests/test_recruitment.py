"""
Tests for recruitment and game start.
"""

from dataclasses import replace

from content.schemas import FALLBACK_STORY
from core.results import ActionError
from core.state import GameStage, default_start_state
from engine.recruitment import start_game
from engine.session import GameSession
from engine.sim_runner import ScriptedOracle


class TestRecruitment:
    def test_batch_costs_500_and_fills_pool(self, playing_state, oracle):
        session = GameSession(oracle=oracle, state=playing_state)
        result = session.recruit("Need a backend dev")

        assert result.ok
        assert session.state.cash == playing_state.cash - 500
        assert [c.id for c in session.state.candidates] == ["cand-1-1-0", "cand-1-1-1", "cand-1-1-2"]

    def test_new_batch_replaces_pool(self, playing_state, oracle):
        session = GameSession(oracle=oracle, state=playing_state)
        session.recruit("first")
        first = {c.id for c in session.state.candidates}
        session.recruit("second")

        ids = {c.id for c in session.state.candidates}
        assert len(ids) == 3
        assert ids.isdisjoint(first)
        assert all(i.startswith("cand-1-2-") for i in ids)
        assert session.state.cash == playing_state.cash - 1000

    def test_failed_posting_still_charges_and_empties_pool(self, playing_state, make_candidate):
        state = replace(playing_state, candidates=[make_candidate()])
        session = GameSession(oracle=ScriptedOracle(fail_all=True), state=state)
        result = session.recruit("anyone")

        assert result.ok
        assert result.payload["used_fallback"] is True
        assert session.state.candidates == []
        assert session.state.cash == state.cash - 500

    def test_empty_batch(self, playing_state):
        session = GameSession(oracle=ScriptedOracle(candidate_replies=[]), state=playing_state)
        session.recruit("unicorn")
        assert session.state.candidates == []
        assert session.state.cash == playing_state.cash - 500

    def test_refused_below_posting_cost(self, playing_state):
        oracle = ScriptedOracle()
        state = replace(playing_state, cash=499)
        session = GameSession(oracle=oracle, state=state)
        result = session.recruit("anyone")

        assert result.error is ActionError.INSUFFICIENT_FUNDS
        assert session.state is state
        assert oracle.calls == []

    def test_hired_employee_keeps_candidate_id(self, playing_state, oracle):
        session = GameSession(oracle=oracle, state=playing_state)
        session.recruit("dev")
        cid = session.state.candidates[0].id
        assert session.hire(cid).ok
        assert session.state.find_employee(cid) is not None
        assert session.state.find_candidate(cid) is None

    def test_candidate_defaults_applied(self, playing_state):
        raw = [{"name": "Bare", "role": "developer", "level": "junior", "skill": 40, "salary": 100, "hireCost": 50}]
        session = GameSession(oracle=ScriptedOracle(candidate_replies=raw), state=playing_state)
        session.recruit("x")
        cand = session.state.candidates[0]
        assert cand.education == "Self-taught"
        assert cand.experience_years == 1
        assert cand.interview_notes == "Candidate seemed eager."


class TestStartGame:
    def test_setup_to_playing(self, oracle):
        result = start_game(
            default_start_state(),
            oracle,
            company_name="Acme",
            industry="ai",
            product_name="Copilot",
            product_description="Writes emails.",
        )
        assert result.ok
        state = result.state
        assert state.stage is GameStage.PLAYING
        assert state.company_name == "Acme"
        assert state.industry == "AI"
        assert state.competitor_name == "Global Corp"

        product = state.find_product(result.payload["product_id"])
        assert product.name == "Copilot"
        assert product.active_feedback == ["Copilot solves a real problem."]

        assert len(state.history) == 1
        assert state.history[0].kind == "start"
        assert state.turn == 1

    def test_only_once(self, oracle):
        started = start_game(default_start_state(), oracle, company_name="A", industry="TECH", product_name="P").state
        again = start_game(started, oracle, company_name="B", industry="TECH", product_name="Q")
        assert again.error is ActionError.INVALID_ACTION
        assert again.state is started

    def test_needs_names(self, oracle):
        result = start_game(default_start_state(), oracle, company_name=" ", industry="TECH", product_name="P")
        assert result.error is ActionError.INVALID_ACTION
        assert oracle.calls == []

    def test_story_fallback(self):
        result = start_game(
            default_start_state(),
            ScriptedOracle(fail_all=True),
            company_name="A",
            industry="TECH",
            product_name="P",
        )
        assert result.ok
        assert result.state.market_context == FALLBACK_STORY.market_context
        assert result.state.products[0].active_feedback == [FALLBACK_STORY.initial_product_analysis]
