"""Attempt limits."""
from typing import Optional


def can_attempt(existing_attempt_count: int, quiz) -> bool:
    """
    Decide whether a user may start another attempt.

    ``existing_attempt_count`` must count every attempt row the user has for
    this quiz, not only completed or passed ones.
    """
    if not quiz.is_active:
        return False
    if quiz.max_attempts is None:
        return True
    return existing_attempt_count < quiz.max_attempts


def attempts_remaining(existing_attempt_count: int, quiz) -> Optional[int]:
    """Remaining attempt slots, or None when the quiz allows unlimited attempts."""
    if quiz.max_attempts is None:
        return None
    return max(quiz.max_attempts - existing_attempt_count, 0)
