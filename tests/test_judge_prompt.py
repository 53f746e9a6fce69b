"""Tests for the judge prompt compiler."""

import pytest

from promptgolf.errors import SchemaError
from promptgolf.scoring.judge_prompt import compile_judge_prompt, round_half_up, rubric_bands

from conftest import make_challenge


class TestCompileJudgePrompt:
    """Compiled judge instructions."""

    def test_deterministic(self, challenge):
        """Same challenge, same text."""
        assert compile_judge_prompt(challenge) == compile_judge_prompt(make_challenge())

    def test_contains_challenge_context(self, challenge):
        text = compile_judge_prompt(challenge)
        assert "**Title:** Summarize the Standup" in text
        assert "**Difficulty:** 1/5" in text
        assert "Your manager missed the standup." in text
        assert "- Fit on one phone screen" in text
        assert "**User's Role:** Engineering manager" in text
        assert "- Verbatim rewrite" in text
        assert "Total possible score: 100 points" in text

    def test_every_dimension_id_appears(self, challenge):
        """The output contract names each configured dimension id."""
        text = compile_judge_prompt(challenge)
        for dim_id in challenge.dimension_ids:
            assert f"id: `{dim_id}`" in text
            assert f"\"{dim_id}\": {{" in text
        assert 'exactly these keys: "clarity", "structure", "constraints"' in text

    def test_dimension_header(self, challenge):
        text = compile_judge_prompt(challenge)
        assert "### Clarity (id: `clarity`, 40 points, 40% weight)" in text

    def test_thresholds_in_guidelines(self, challenge):
        text = compile_judge_prompt(challenge)
        assert "(45+ points)" in text
        assert "(85+ points)" in text

    def test_optional_sections_omitted(self):
        challenge = make_challenge(**{
            "content.scenario": {"headline": "Headline", "context": "Context"},
            "content.successCriteria": {"idealOutcome": "Outcome"},
        })
        text = compile_judge_prompt(challenge)
        assert "**Constraints:**" not in text
        assert "**User's Role:**" not in text
        assert "**Must Include:**" not in text

    def test_override_used_verbatim(self):
        challenge = make_challenge(**{"scoring.judge.systemPromptOverride": "Just score it."})
        assert compile_judge_prompt(challenge) == "Just score it."

    def test_override_not_trimmed(self):
        """Any set override bypasses compilation, whitespace included."""
        challenge = make_challenge(**{"scoring.judge.systemPromptOverride": "  Score it.\n"})
        assert compile_judge_prompt(challenge) == "  Score it.\n"

    def test_empty_override_rejected(self):
        with pytest.raises(SchemaError):
            make_challenge(**{"scoring.judge.systemPromptOverride": ""})


class TestRubricBands:
    """Point ranges per rubric tier."""

    def test_bands_for_25_points(self):
        """Fractions are rounded half up."""
        assert rubric_bands(25) == [
            ("excellent", 23, 25),
            ("good", 18, 22),
            ("fair", 13, 17),
            ("poor", 0, 12),
        ]

    def test_bands_for_40_points(self):
        assert rubric_bands(40) == [
            ("excellent", 36, 40),
            ("good", 28, 36),
            ("fair", 20, 28),
            ("poor", 0, 20),
        ]

    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.4, 2), (7.0, 7)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected
