import math
from dataclasses import dataclass
from typing import Any

from physics_practice.core.config import ZERO_ANSWER_ABS_TOLERANCE
from physics_practice.core.errors import ValidationFailure


@dataclass(frozen=True)
class GradeResult:
    is_correct: bool
    percent_diff: float


def parse_answer(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        raise ValidationFailure("Answer required.")

    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise ValidationFailure("Answer required.")

    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationFailure("Answer must be a number.") from e

    if not math.isfinite(value):
        raise ValidationFailure("Answer must be a finite number.")
    return value


def percent_difference(user_answer: float, correct_answer: float) -> float:
    return abs(user_answer - correct_answer) / abs(correct_answer) * 100


def check_answer(user_answer: float, correct_answer: float, tolerance_percent: float) -> GradeResult:
    """
    Percentage-tolerance check.

    A reference answer of exactly 0 has no meaningful relative error, so it
    falls back to an absolute tolerance and reports percent_diff as 0.
    """
    if correct_answer == 0:
        return GradeResult(
            is_correct=abs(user_answer) <= ZERO_ANSWER_ABS_TOLERANCE,
            percent_diff=0.0,
        )

    diff = percent_difference(user_answer, correct_answer)
    return GradeResult(is_correct=diff <= tolerance_percent, percent_diff=diff)
