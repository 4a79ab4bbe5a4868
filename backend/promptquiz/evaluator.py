"""Scores free-form model output against a stored correct answer.

The evaluator is a pure function: it never raises and never touches shared
state, so it can be called from any number of request handlers at once.
Malformed or missing numeric content is reported through ``mode`` rather
than as an error.

Scoring curve, shared by both strategies::

	score = round(clamp(100 / (1 + (x / base) ** p), 0, 100))

Small answers (``|correct| <= integer_scale_threshold``) use the absolute
error as ``x`` with ``base = integer_base_error`` (``sub_unit_base_error``
when ``|correct| < 1``). Larger answers use the relative error against
``reference_relative_error``.
"""

from __future__ import annotations
import math
import sys
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .numeric import find_numbers, fraction_to_float, parse_number, precise_abs_diff, try_parse_number


class EvaluationMode(str, Enum):
	EXACT_MATCH = "exact_match"
	NUMERIC_EXACT = "numeric_exact"
	NUMERIC_SCORE_INTEGER = "numeric_score_integer"
	NUMERIC_SCORE_RELATIVE = "numeric_score_relative"
	NO_NUMERIC = "no_numeric"
	EXTRACTED_ONLY = "extracted_only"


class ScoringConfig(BaseModel):
	model_config = ConfigDict(frozen=True)

	# Curvature of the logistic decay; larger means a sharper cutoff
	curvature: float = Field(default=2.0, ge=1.0)
	# Absolute error worth 50 points on integer-scale problems
	integer_base_error: float = Field(default=2.0, gt=0)
	# Same, when the correct answer is below 1 in magnitude
	sub_unit_base_error: float = Field(default=0.5, gt=0)
	# Relative error worth 50 points on large-magnitude problems
	reference_relative_error: float = Field(default=0.05, gt=0)
	# Lower bound for the relative error denominator
	tolerance_floor: float = Field(default=1e-2, gt=0)
	integer_scale_threshold: float = Field(default=1000.0, ge=0)
	strategy_id: str = "v3-scale-adaptive"

	def curve_params(self) -> Dict[str, float]:
		return self.model_dump(exclude={"strategy_id"})


DEFAULT_SCORING = ScoringConfig()


class EvaluationDetail(BaseModel):
	"""Diagnostic record persisted next to each score.

	Which optional fields are set depends on the mode; ``to_dict`` drops the
	unset ones so the stored blob only carries what the branch produced.
	"""

	answer_raw: str
	correct_raw: str
	answer_trimmed: str
	correct_trimmed: str
	scoring_strategy_id: str
	curve_params: Dict[str, float]
	reason: Optional[str] = None
	all_numbers_found: Optional[List[str]] = None
	extraction_note: Optional[str] = None
	extracted_text: Optional[str] = None
	extracted_numeric: Optional[float] = None
	parse_error: Optional[str] = None
	absolute_diff: Optional[float] = None
	diff_precision: Optional[Literal["exact", "approximate"]] = None
	relative_error: Optional[float] = None
	normalized_score: Optional[int] = None

	def to_dict(self) -> Dict[str, Any]:
		return self.model_dump(exclude_none=True)


class EvaluationResult(BaseModel):
	score: int = Field(ge=0, le=100)
	extracted_value: Optional[float] = None
	mode: EvaluationMode
	detail: EvaluationDetail


def logistic_score(x: float, base: float, p: float) -> int:
	if x <= 0:
		return 100
	try:
		raw = 100.0 / (1.0 + (x / base) ** p)
	except OverflowError:
		return 0
	raw = min(max(raw, 0.0), 100.0)
	# Half away from zero; raw is never negative here
	return int(math.floor(raw + 0.5))


def integer_scale_score(absolute_diff: float, abs_correct: float, config: ScoringConfig = DEFAULT_SCORING) -> int:
	base = config.integer_base_error
	if abs_correct < 1.0:
		base = config.sub_unit_base_error
	return logistic_score(absolute_diff, base, config.curvature)


def relative_error(absolute_diff: float, correct_value: float, config: ScoringConfig = DEFAULT_SCORING) -> float:
	return absolute_diff / max(abs(correct_value), config.tolerance_floor)


def relative_error_score(rel_error: float, config: ScoringConfig = DEFAULT_SCORING) -> int:
	return logistic_score(rel_error, config.reference_relative_error, config.curvature)


def evaluate(answer_text: str, correct_answer: str, config: ScoringConfig = DEFAULT_SCORING) -> EvaluationResult:
	answer_raw = "" if answer_text is None else str(answer_text)
	correct_raw = "" if correct_answer is None else str(correct_answer)
	answer = answer_raw.strip()
	correct = correct_raw.strip()

	detail = EvaluationDetail(
		answer_raw=answer_raw,
		correct_raw=correct_raw,
		answer_trimmed=answer,
		correct_trimmed=correct,
		scoring_strategy_id=config.strategy_id,
		curve_params=config.curve_params(),
	)

	def result(score: int, mode: EvaluationMode, extracted: Optional[float] = None) -> EvaluationResult:
		return EvaluationResult(score=score, extracted_value=extracted, mode=mode, detail=detail)

	if answer == correct:
		# Also covers textual answers; only record a diff when the text is a number
		detail.normalized_score = 100
		value = try_parse_number(answer)
		if value is not None:
			detail.extracted_text = answer
			detail.extracted_numeric = value
			detail.absolute_diff = 0.0
		return result(100, EvaluationMode.EXACT_MATCH, value)

	correct_value = try_parse_number(correct)

	tokens = find_numbers(answer)
	if not tokens:
		detail.reason = "answer contains no numeric value"
		return result(0, EvaluationMode.NO_NUMERIC)
	# Explanations usually state the final answer last
	token = tokens[-1]
	if len(tokens) > 1:
		detail.all_numbers_found = tokens
		detail.extraction_note = "multiple numbers found; the last one is taken as the final answer"

	try:
		value = parse_number(token)
	except ValueError as err:
		detail.reason = "numeric extraction failed"
		detail.parse_error = str(err)
		return result(0, EvaluationMode.NO_NUMERIC)

	detail.extracted_text = token
	detail.extracted_numeric = value

	if correct_value is None:
		detail.reason = "a number was extracted but the correct answer is not numeric"
		return result(0, EvaluationMode.EXTRACTED_ONLY, value)

	exact = precise_abs_diff(correct, token)
	if exact is not None:
		is_zero = exact == 0
		diff = min(fraction_to_float(exact), sys.float_info.max)
		precision = "exact"
	else:
		diff = min(abs(value - correct_value), sys.float_info.max)
		is_zero = diff == 0
		precision = "approximate"

	detail.absolute_diff = diff
	if is_zero:
		detail.absolute_diff = 0.0
		detail.normalized_score = 100
		return result(100, EvaluationMode.NUMERIC_EXACT, value)

	detail.diff_precision = precision
	abs_correct = abs(correct_value)
	if abs_correct <= config.integer_scale_threshold:
		score = integer_scale_score(diff, abs_correct, config)
		mode = EvaluationMode.NUMERIC_SCORE_INTEGER
	else:
		rel = relative_error(diff, correct_value, config)
		detail.relative_error = rel
		score = relative_error_score(rel, config)
		mode = EvaluationMode.NUMERIC_SCORE_RELATIVE
	detail.normalized_score = score
	return result(score, mode, value)
