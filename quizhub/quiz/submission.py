"""
Quiz Submission Service

Grades a submitted quiz and records the attempt:
- resolve the quiz and check the caller may submit to it
- enforce the attempt limit, serialized per (user, quiz)
- grade every question in order and compute the score
- persist the attempt with all of its answer records in one transaction
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from quizhub.quiz.access import ACTION_SUBMIT, Principal, require_mutate
from quizhub.quiz.errors import (
    AttemptLimitExceeded,
    AttemptSlotTaken,
    NoQuestions,
    QuizNotFound,
    StorageFailure,
)
from quizhub.quiz.grading import compute_score, grade
from quizhub.quiz.locks import AttemptLocks, attempt_locks
from quizhub.quiz.models import Answer, QuizAttempt
from quizhub.quiz.policy import attempts_remaining, can_attempt
from quizhub.quiz.validation import parse_submitted_answers, parse_time_spent

logger = logging.getLogger(__name__)


class SubmissionService:
    """Runs one submission from lookup to persisted attempt. Never retries."""

    def __init__(self, store=None, locks: Optional[AttemptLocks] = None,
                 clock: Callable[[], datetime] = datetime.utcnow):
        if store is None:
            from quizhub.quiz.store import QuizStore
            store = QuizStore()
        self.store = store
        self.locks = locks or attempt_locks
        self.clock = clock

    def submit_quiz(
        self,
        quiz_id: int,
        principal: Principal,
        answers: Any,
        time_spent_seconds: Any = None,
    ) -> dict:
        """
        Grade and record one attempt.

        Args:
            quiz_id: Quiz being submitted
            principal: The submitting user
            answers: List of ``{"question_id": int, "answer": str}`` objects
            time_spent_seconds: Optional time the student spent, in seconds

        Returns:
            Dictionary with score, total_points, earned_points, passed,
            passing_score, attempt_id and attempts_remaining

        Raises:
            QuizNotFound, AttemptLimitExceeded, NoQuestions,
            ValidationError, StorageFailure
        """
        quiz = self.store.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFound("Quiz not found")

        require_mutate(principal, quiz, ACTION_SUBMIT)
        if not quiz.is_active:
            raise QuizNotFound("Quiz not found or inactive")

        # Reject malformed bodies before they can consume an attempt slot
        submitted = parse_submitted_answers(answers)
        time_spent = parse_time_spent(time_spent_seconds)

        with self.locks.hold(principal.user_id, quiz.id):
            existing = self.store.count_attempts(principal.user_id, quiz.id)
            if not can_attempt(existing, quiz):
                logger.info(
                    f"Attempt limit reached: user={principal.user_id}, quiz={quiz.id}, "
                    f"attempts={existing}, max={quiz.max_attempts}"
                )
                raise AttemptLimitExceeded(
                    f"Maximum attempts ({quiz.max_attempts}) reached for this quiz"
                )

            questions = self.store.get_questions(quiz.id)
            if not questions:
                logger.error(f"Quiz {quiz.id} has no questions and cannot be graded")
                raise NoQuestions("This quiz has no questions and cannot be graded")

            total_points = 0
            earned_points = 0
            records = []
            for question in questions:
                answer_text = submitted.get(question.id, "")
                result = grade(question, answer_text)
                total_points += question.points
                earned_points += result.points_earned
                records.append(Answer(
                    question_id=question.id,
                    answer_text=answer_text,
                    is_correct=result.is_correct,
                    points_earned=result.points_earned,
                ))

            score = compute_score(earned_points, total_points)
            passed = score >= quiz.passing_score

            completed_at = self.clock()
            started_at = completed_at - timedelta(seconds=time_spent) if time_spent else completed_at
            attempt = QuizAttempt(
                quiz_id=quiz.id,
                user_id=principal.user_id,
                attempt_number=existing + 1,
                score=score,
                total_points=total_points,
                earned_points=earned_points,
                passed=passed,
                started_at=started_at,
                completed_at=completed_at,
                time_spent_seconds=time_spent,
            )

            try:
                attempt = self.store.create_attempt_with_answers(attempt, records)
            except AttemptSlotTaken:
                # Another process claimed this slot first; re-check the limit
                if not can_attempt(self.store.count_attempts(principal.user_id, quiz.id), quiz):
                    raise AttemptLimitExceeded(
                        f"Maximum attempts ({quiz.max_attempts}) reached for this quiz"
                    )
                raise StorageFailure("Another submission was saved at the same time. Please try again.")

        logger.info(
            f"Quiz submitted: user={principal.user_id}, quiz={quiz.id}, attempt={attempt.id}, "
            f"score={score}, earned={earned_points}/{total_points}, passed={passed}"
        )

        return {
            'attempt_id': attempt.id,
            'score': score,
            'total_points': total_points,
            'earned_points': earned_points,
            'passed': passed,
            'passing_score': quiz.passing_score,
            'attempts_remaining': attempts_remaining(existing + 1, quiz),
        }
