"""Numeric token extraction and exact difference helpers used by the evaluator."""

from __future__ import annotations
import math
import re
from fractions import Fraction
from typing import List, Optional

# Sign, integer part and an optional fraction, ASCII digits only. Units,
# thousands separators and dates get no special handling.
NUMBER_PATTERN = re.compile(r"[-+]?\d+(?:\.\d+)?", re.ASCII)

_DECIMAL_LITERAL = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?", re.ASCII)


def find_numbers(text: str) -> List[str]:
	return NUMBER_PATTERN.findall(text or "")


def parse_number(text: str) -> float:
	"""Parse a plain decimal literal such as ``-12``, ``3.14`` or ``1e5``.

	Anything else raises ``ValueError``, including the ``inf``/``nan``
	spellings that ``float()`` would accept and literals too large to be
	represented as a finite float.
	"""
	if not _DECIMAL_LITERAL.fullmatch(text or ""):
		raise ValueError(f"not a decimal literal: {text!r}")
	value = float(text)
	if not math.isfinite(value):
		raise ValueError(f"numeric value out of range: {text!r}")
	return value


def try_parse_number(text: str) -> Optional[float]:
	try:
		return parse_number(text)
	except ValueError:
		return None


def precise_abs_diff(correct_text: str, extracted_text: str) -> Optional[Fraction]:
	"""Return ``|extracted - correct|`` as an exact fraction.

	``None`` means one of the strings is not a clean rational literal and the
	caller should fall back to float subtraction.
	"""
	try:
		correct = Fraction(correct_text)
		extracted = Fraction(extracted_text)
	except (ValueError, ZeroDivisionError):
		return None
	return abs(extracted - correct)


def fraction_to_float(value: Fraction) -> float:
	try:
		return float(value)
	except OverflowError:
		return math.inf
