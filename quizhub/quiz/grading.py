"""
Answer grading.

Every question type is graded the same way: the submitted answer and the
stored correct answer are trimmed and lower-cased, then compared for
equality. There is no partial credit.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, NamedTuple


class GradeResult(NamedTuple):
    is_correct: bool
    points_earned: int


def normalize_answer(value: Any) -> str:
    """Trim and lower-case an answer; anything that is not a string counts as empty."""
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def grade(question, submitted_answer: Any) -> GradeResult:
    """
    Grade one submitted answer against a question.

    Args:
        question: Object with ``correct_answer`` and ``points``
        submitted_answer: The student's answer, or None when unanswered

    Returns:
        GradeResult with the question's full points when correct, else 0
    """
    expected = normalize_answer(question.correct_answer)
    is_correct = normalize_answer(submitted_answer) == expected
    return GradeResult(is_correct, question.points if is_correct else 0)


def compute_score(earned_points: int, total_points: int) -> int:
    """Percentage of points earned, rounded half-up; 0 when the quiz is worth nothing."""
    if total_points <= 0:
        return 0
    percentage = Decimal(100 * earned_points) / Decimal(total_points)
    return int(percentage.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
