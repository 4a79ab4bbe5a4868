"""Tests for the answer-evaluation engine."""

from __future__ import annotations

import math
import sys

import pytest
from pydantic import ValidationError

from promptquiz.evaluator import (
    DEFAULT_SCORING,
    EvaluationMode,
    ScoringConfig,
    evaluate,
    integer_scale_score,
    logistic_score,
    relative_error_score,
)

ALWAYS_PRESENT = {
    "answer_raw",
    "correct_raw",
    "answer_trimmed",
    "correct_trimmed",
    "scoring_strategy_id",
    "curve_params",
}


# ---------------------------------------------------------------------------
# Mode classification
# ---------------------------------------------------------------------------


class TestModes:
    def test_exact_match_numeric(self) -> None:
        result = evaluate("42", "42")
        assert result.score == 100
        assert result.mode is EvaluationMode.EXACT_MATCH
        assert result.extracted_value == 42.0
        detail = result.detail.to_dict()
        assert detail["absolute_diff"] == 0.0
        assert detail["extracted_text"] == "42"
        assert detail["normalized_score"] == 100

    def test_exact_match_ignores_surrounding_whitespace(self) -> None:
        result = evaluate("  42 \n", "42")
        assert result.mode is EvaluationMode.EXACT_MATCH
        assert result.detail.answer_raw == "  42 \n"
        assert result.detail.answer_trimmed == "42"

    def test_exact_match_textual_answer_has_no_extracted_value(self) -> None:
        result = evaluate("ten", " ten ")
        assert result.score == 100
        assert result.mode is EvaluationMode.EXACT_MATCH
        assert result.extracted_value is None
        detail = result.detail.to_dict()
        assert "absolute_diff" not in detail
        assert "extracted_text" not in detail

    def test_negative_exact_match(self) -> None:
        result = evaluate("-5", "-5")
        assert result.mode is EvaluationMode.EXACT_MATCH
        assert result.extracted_value == -5.0

    def test_numeric_exact_with_different_formatting(self) -> None:
        result = evaluate("010", "10")
        assert result.score == 100
        assert result.mode is EvaluationMode.NUMERIC_EXACT
        assert result.extracted_value == 10.0
        assert result.detail.absolute_diff == 0.0

    def test_numeric_exact_with_explicit_plus_sign(self) -> None:
        result = evaluate("+7", "7")
        assert result.mode is EvaluationMode.NUMERIC_EXACT

    def test_numeric_exact_against_exponent_correct_answer(self) -> None:
        result = evaluate("The answer is 1000", "1e3")
        assert result.mode is EvaluationMode.NUMERIC_EXACT
        assert result.score == 100

    def test_last_number_is_taken(self) -> None:
        result = evaluate("First 11 then 10", "10")
        assert result.extracted_value == 10.0
        assert result.mode is EvaluationMode.NUMERIC_EXACT
        assert result.score == 100
        detail = result.detail.to_dict()
        assert detail["all_numbers_found"] == ["11", "10"]
        assert "extraction_note" in detail

    def test_single_number_has_no_extraction_note(self) -> None:
        detail = evaluate("It is 4", "3").detail.to_dict()
        assert "all_numbers_found" not in detail
        assert "extraction_note" not in detail

    def test_no_numeric(self) -> None:
        result = evaluate("No numbers here", "10")
        assert result.score == 0
        assert result.mode is EvaluationMode.NO_NUMERIC
        assert result.extracted_value is None
        detail = result.detail.to_dict()
        assert detail["reason"]
        assert "absolute_diff" not in detail
        assert "normalized_score" not in detail

    def test_full_width_digits_are_not_numbers(self) -> None:
        result = evaluate("答えは３です", "3")
        assert result.score == 0
        assert result.mode is EvaluationMode.NO_NUMERIC
        assert result.extracted_value is None

    def test_full_width_correct_answer_is_not_numeric(self) -> None:
        result = evaluate("答えは 3 です", "３")
        assert result.mode is EvaluationMode.EXTRACTED_ONLY

    def test_empty_answer(self) -> None:
        result = evaluate("", "10")
        assert result.score == 0
        assert result.mode is EvaluationMode.NO_NUMERIC

    def test_overflowing_token_is_a_parse_failure(self) -> None:
        result = evaluate("1" + "0" * 400, "10")
        assert result.score == 0
        assert result.mode is EvaluationMode.NO_NUMERIC
        assert result.extracted_value is None
        assert "parse_error" in result.detail.to_dict()

    def test_extracted_only_when_correct_answer_is_text(self) -> None:
        result = evaluate("Value: 7", "ten")
        assert result.score == 0
        assert result.mode is EvaluationMode.EXTRACTED_ONLY
        assert result.extracted_value == 7.0
        detail = result.detail.to_dict()
        assert detail["extracted_text"] == "7"
        assert detail["extracted_numeric"] == 7.0
        assert "absolute_diff" not in detail
        assert "normalized_score" not in detail

    @pytest.mark.parametrize("correct", ["nan", "inf", "-Infinity", "1/3", ""])
    def test_non_decimal_correct_answers_are_not_numeric(self, correct: str) -> None:
        result = evaluate("Answer: 3", correct)
        assert result.mode is EvaluationMode.EXTRACTED_ONLY
        assert result.score == 0

    @pytest.mark.parametrize(
        "answer,correct,keys",
        [
            ("42", "42", {"extracted_text", "extracted_numeric", "absolute_diff", "normalized_score"}),
            ("010", "10", {"extracted_text", "extracted_numeric", "absolute_diff", "normalized_score"}),
            ("2", "3", {"extracted_text", "extracted_numeric", "absolute_diff", "diff_precision", "normalized_score"}),
            (
                "10100",
                "10000",
                {"extracted_text", "extracted_numeric", "absolute_diff", "diff_precision", "normalized_score", "relative_error"},
            ),
            ("nothing", "3", {"reason"}),
            ("7", "ten", {"extracted_text", "extracted_numeric", "reason"}),
        ],
    )
    def test_detail_keys_per_mode(self, answer: str, correct: str, keys: set[str]) -> None:
        detail = evaluate(answer, correct).detail.to_dict()
        assert set(detail) == ALWAYS_PRESENT | keys


# ---------------------------------------------------------------------------
# Partial credit
# ---------------------------------------------------------------------------


class TestScoring:
    def test_off_by_one_on_small_answer(self) -> None:
        result = evaluate("2", "3")
        assert result.mode is EvaluationMode.NUMERIC_SCORE_INTEGER
        assert result.score == 80
        assert result.detail.absolute_diff == 1.0
        assert result.detail.diff_precision == "exact"
        assert result.detail.normalized_score == 80

    def test_off_by_base_error_scores_fifty(self) -> None:
        result = evaluate("5", "3")
        assert result.mode is EvaluationMode.NUMERIC_SCORE_INTEGER
        assert result.score == 50

    def test_relative_strategy_for_large_answers(self) -> None:
        result = evaluate("10100", "10000")
        assert result.mode is EvaluationMode.NUMERIC_SCORE_RELATIVE
        assert result.detail.relative_error == pytest.approx(0.01)
        assert result.score == relative_error_score(0.01)
        assert result.score == 96

    def test_exact_decimal_difference(self) -> None:
        result = evaluate("3.1415", "3.1416")
        assert result.detail.absolute_diff == 0.0001
        assert result.detail.diff_precision == "exact"
        assert result.mode is EvaluationMode.NUMERIC_SCORE_INTEGER

    @pytest.mark.skipif(
        not hasattr(sys, "get_int_max_str_digits"), reason="needs the int string-conversion digit limit"
    )
    def test_float_fallback_when_fraction_cannot_parse(self) -> None:
        # Fraction refuses a fractional part longer than the int digit limit; float does not
        digits = sys.get_int_max_str_digits() + 100
        answer = "3." + "1" * digits
        result = evaluate(f"Final answer: {answer}", "3")
        assert result.detail.diff_precision == "approximate"
        assert result.mode is EvaluationMode.NUMERIC_SCORE_INTEGER
        assert result.detail.absolute_diff == pytest.approx(0.1111111111)
        assert math.isfinite(result.detail.absolute_diff)
        assert 0 <= result.score <= 100
        assert result.score == integer_scale_score(result.detail.absolute_diff, 3.0)

    def test_sub_unit_answers_use_stricter_base(self) -> None:
        result = evaluate("0.75", "0.5")
        assert result.mode is EvaluationMode.NUMERIC_SCORE_INTEGER
        assert result.score == 80

    def test_zero_correct_answer(self) -> None:
        assert evaluate("0.5", "0").score == 50

    def test_far_off_answer_scores_zero(self) -> None:
        result = evaluate("-1200", "-1000")
        assert result.mode is EvaluationMode.NUMERIC_SCORE_INTEGER
        assert result.score == 0

    @pytest.mark.parametrize("correct,answer", [("1000", "1002"), ("-1000", "-998"), ("3", "4"), ("0.2", "0.3")])
    def test_integer_scale_at_or_below_threshold(self, correct: str, answer: str) -> None:
        assert evaluate(answer, correct).mode is EvaluationMode.NUMERIC_SCORE_INTEGER

    @pytest.mark.parametrize("correct,answer", [("1001", "1003"), ("-5000", "-5001"), ("1000.5", "999")])
    def test_relative_scale_above_threshold(self, correct: str, answer: str) -> None:
        assert evaluate(answer, correct).mode is EvaluationMode.NUMERIC_SCORE_RELATIVE

    def test_score_never_increases_with_error(self) -> None:
        scores = [evaluate(str(3 + d), "3").score for d in range(0, 40)]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize(
        "answer,correct",
        [
            ("1e308", "-1e308"),
            ("-99999999999999999999", "1"),
            ("0.0000001", "0"),
            ("999999", "1000000"),
            ("abc 12 def -3.5", "-3.4"),
            ("\n\t", "\n"),
        ],
    )
    def test_score_is_bounded(self, answer: str, correct: str) -> None:
        result = evaluate(answer, correct)
        assert 0 <= result.score <= 100


# ---------------------------------------------------------------------------
# Curve and configuration
# ---------------------------------------------------------------------------


class TestCurve:
    def test_zero_error_is_full_score(self) -> None:
        assert logistic_score(0.0, 2.0, 2.0) == 100

    def test_rounds_half_away_from_zero(self) -> None:
        # 100 / (1 + 7) == 12.5
        assert logistic_score(7.0, 1.0, 1.0) == 13

    def test_overflow_scores_zero(self) -> None:
        assert logistic_score(1e300, 1e-10, 2.0) == 0

    def test_sub_unit_base_only_below_one(self) -> None:
        assert integer_scale_score(0.5, 0.9) == 50
        assert integer_scale_score(0.5, 1.0) == 94

    def test_injected_config_changes_curve(self) -> None:
        strict = ScoringConfig(integer_base_error=1.0)
        result = evaluate("2", "3", strict)
        assert result.score == 50
        assert result.detail.curve_params["integer_base_error"] == 1.0

    def test_config_is_immutable(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_SCORING.curvature = 3.0

    def test_curvature_below_one_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ScoringConfig(curvature=0.5)

    def test_detail_records_strategy(self) -> None:
        detail = evaluate("1", "2").detail
        assert detail.scoring_strategy_id == DEFAULT_SCORING.strategy_id
        assert detail.curve_params == DEFAULT_SCORING.curve_params()
        assert "strategy_id" not in detail.curve_params
