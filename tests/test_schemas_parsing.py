"""
Tests for LLM output parsing and Oracle reply validation.
"""

import pytest

from content.parsing import must_parse_json, try_parse_json
from content.schemas import candidates_from_llm, pitch_from_llm, story_from_llm, turn_outcome_from_llm
from core.state import EventType, Level, Role


class TestParsing:
    def test_fenced_with_trailing_comma(self):
        raw = 'Here you go:\n```json\n{"a": 1, "b": [1, 2,],}\n```'
        assert must_parse_json(raw) == {"a": 1, "b": [1, 2]}

    def test_smart_quotes_and_prose(self):
        raw = "Sure! {“narrative”: “ok”} thanks"
        res = try_parse_json(raw)
        assert res.data == {"narrative": "ok"}

    def test_python_literals(self):
        assert must_parse_json("{'accepted': True, 'note': None}") == {"accepted": True, "note": None}

    def test_bare_newline_inside_string(self):
        assert must_parse_json('{"narrative": "line one\nline two"}') == {"narrative": "line one\nline two"}

    def test_array_root(self):
        assert must_parse_json('noise [{"name": "A"}] noise', root=list) == [{"name": "A"}]

    def test_wrong_root_type(self):
        res = try_parse_json("[1, 2]")
        assert res.data is None
        assert "not an object" in res.error

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            must_parse_json("the model said no")


def _turn(**overrides):
    data = {
        "narrative": "Week done.",
        "cashChange": -1200,
        "userChange": 10,
        "moraleChange": -1,
        "productUpdates": [
            {
                "productId": "p1",
                "devProgressChange": 12,
                "qualityChange": 2,
                "bugChange": -1,
                "userChange": 10,
                "revenueChange": 30,
                "newFeedback": "Love it",
            }
        ],
    }
    data.update(overrides)
    return data


class TestTurnReply:
    def test_valid(self):
        outcome = turn_outcome_from_llm(_turn())
        assert outcome.cash_change == -1200
        assert outcome.product_updates[0].new_feedback == "Love it"
        assert outcome.random_event is None
        assert outcome.skill_xp_earned is None

    def test_numeric_coercion(self):
        outcome = turn_outcome_from_llm(_turn(cashChange="-1,500", moraleChange=2.6))
        assert outcome.cash_change == -1500
        assert outcome.morale_change == 3

    @pytest.mark.parametrize("value", [True, None, "lots", [1]])
    def test_bad_integers_rejected(self, value):
        with pytest.raises(ValueError):
            turn_outcome_from_llm(_turn(userChange=value))

    def test_event_type_case_insensitive(self):
        event = {"title": "Leak", "description": "Oops", "type": "CRISIS", "options": [{"label": "Deny", "risk": "high"}]}
        outcome = turn_outcome_from_llm(_turn(randomEvent=event))
        assert outcome.random_event.type is EventType.CRISIS
        assert outcome.random_event.options[0].label == "Deny"

    def test_event_options_must_be_objects(self):
        event = {"title": "Leak", "description": "Oops", "type": "crisis", "options": ["Deny"]}
        with pytest.raises(ValueError):
            turn_outcome_from_llm(_turn(randomEvent=event))

    def test_skill_xp_partial(self):
        outcome = turn_outcome_from_llm(_turn(skillXpEarned={"tech": 2}))
        assert (outcome.skill_xp_earned.management, outcome.skill_xp_earned.tech) == (0, 2)

    def test_blank_feedback_dropped(self):
        data = _turn()
        data["productUpdates"][0]["newFeedback"] = "   "
        assert turn_outcome_from_llm(data).product_updates[0].new_feedback is None


class TestPitchReply:
    def test_equity_clamped(self):
        pitch = pitch_from_llm(
            {"accepted": True, "valuation": 5, "equityDemanded": 150, "investmentAmount": 10, "investorFeedback": "ok"}
        )
        assert pitch.equity_demanded == 100

    def test_string_bool(self):
        pitch = pitch_from_llm(
            {"accepted": "false", "valuation": 0, "equityDemanded": 0, "investmentAmount": 0, "investorFeedback": "no"}
        )
        assert pitch.accepted is False

    def test_missing_field(self):
        with pytest.raises(ValueError):
            pitch_from_llm({"accepted": True, "valuation": 5})


class TestCandidatesReply:
    def test_wrapper_object_and_normalization(self):
        data = {
            "candidates": [
                {"name": "Ana", "role": "DESIGNER", "level": "lead", "skill": 120, "salary": 500, "hireCost": 800,
                 "specificSkills": "Figma, Branding"},
                {"name": "Bob", "role": "Astronaut", "level": "Junior", "skill": 40, "salary": 100, "hireCost": 50},
                "not an object",
            ]
        }
        cands = candidates_from_llm(data, id_prefix="cand-3-1")
        assert len(cands) == 1
        ana = cands[0]
        assert ana.id == "cand-3-1-0"
        assert ana.role is Role.DESIGNER
        assert ana.level is Level.LEAD
        assert ana.skill == 100
        assert ana.specific_skills == ["Figma", "Branding"]

    def test_not_a_list(self):
        with pytest.raises(ValueError):
            candidates_from_llm("three people", id_prefix="x")


def test_story_requires_all_fields():
    with pytest.raises(ValueError):
        story_from_llm({"marketContext": "Hot market."})
