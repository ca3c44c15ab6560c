"""
Error taxonomy for quiz operations.

Every error carries a stable ``code`` and the HTTP status the API layer
answers with, so routes never translate exceptions by hand.
"""
from typing import Optional


class QuizServiceError(Exception):
    """Base class for all quiz errors surfaced to API clients."""

    code = "quiz_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        payload = {
            'success': False,
            'error': self.message,
            'code': self.code,
        }
        if self.field:
            payload['field'] = self.field
        if self.retryable:
            payload['retryable'] = True
        return payload


class QuizNotFound(QuizServiceError):
    """Quiz does not exist, or is unavailable to the caller for submission."""
    code = "quiz_not_found"
    status_code = 404


class QuestionNotFound(QuizServiceError):
    code = "question_not_found"
    status_code = 404


class QuestionInUse(QuizServiceError):
    """Submitted answers reference the question, so deleting it would rewrite history."""
    code = "question_in_use"
    status_code = 409


class Forbidden(QuizServiceError):
    code = "forbidden"
    status_code = 403


class AttemptLimitExceeded(QuizServiceError):
    code = "attempt_limit_exceeded"
    status_code = 409


class NoQuestions(QuizServiceError):
    """The quiz has no questions and cannot be graded (authoring problem)."""
    code = "no_questions"
    status_code = 500


class ValidationError(QuizServiceError):
    code = "validation_error"
    status_code = 400


class StorageFailure(QuizServiceError):
    """Persisting a submission failed; nothing was written and the caller may retry."""
    code = "storage_failure"
    status_code = 503
    retryable = True


class AttemptSlotTaken(StorageFailure):
    """Another writer already claimed this (quiz, user, attempt_number) slot."""
    code = "attempt_slot_taken"
