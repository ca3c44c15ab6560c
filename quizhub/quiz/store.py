"""
Quiz storage backed by the Flask-SQLAlchemy session.

Reads used during submission never lock. ``create_attempt_with_answers``
writes an attempt and all of its answer records in one transaction and
rolls everything back on any failure. ``delete_quiz`` removes answer
records, attempts and questions explicitly so the cascade does not depend
on the database engine enforcing foreign keys. A question that attempts
have answered cannot be deleted.
"""
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizhub import db
from quizhub.auth.models import User
from quizhub.quiz.errors import AttemptSlotTaken, QuestionInUse, StorageFailure, ValidationError
from quizhub.quiz.models import Answer, Question, Quiz, QuizAttempt

logger = logging.getLogger(__name__)


class QuizStore:
    """Storage operations for quizzes, questions, attempts and answer records."""

    def __init__(self, session=None):
        self.session = session or db.session

    # ============================================================
    # READS
    # ============================================================

    def get_quiz(self, quiz_id: int) -> Optional[Quiz]:
        return self.session.get(Quiz, quiz_id)

    def get_questions(self, quiz_id: int) -> List[Question]:
        return (
            self.session.query(Question)
            .filter_by(quiz_id=quiz_id)
            .order_by(Question.order_index)
            .all()
        )

    def get_question(self, quiz_id: int, question_id: int) -> Optional[Question]:
        return (
            self.session.query(Question)
            .filter_by(id=question_id, quiz_id=quiz_id)
            .first()
        )

    def count_attempts(self, user_id: int, quiz_id: int) -> int:
        """Every attempt row for (user, quiz), completed or not."""
        return (
            self.session.query(func.count(QuizAttempt.id))
            .filter_by(user_id=user_id, quiz_id=quiz_id)
            .scalar()
        ) or 0

    def list_quizzes(self, include_inactive: bool = False) -> List[Quiz]:
        query = self.session.query(Quiz)
        if not include_inactive:
            query = query.filter(Quiz.is_active.is_(True))
        return query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()

    def question_stats(self, quiz_ids: List[int]) -> dict:
        """``{quiz_id: (question_count, total_points)}`` in one grouped query."""
        if not quiz_ids:
            return {}
        rows = (
            self.session.query(
                Question.quiz_id,
                func.count(Question.id),
                func.coalesce(func.sum(Question.points), 0),
            )
            .filter(Question.quiz_id.in_(quiz_ids))
            .group_by(Question.quiz_id)
            .all()
        )
        return {quiz_id: (count, int(points)) for quiz_id, count, points in rows}

    def attempt_counts_for_user(self, user_id: int, quiz_ids: List[int]) -> dict:
        if not quiz_ids:
            return {}
        rows = (
            self.session.query(QuizAttempt.quiz_id, func.count(QuizAttempt.id))
            .filter(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id.in_(quiz_ids))
            .group_by(QuizAttempt.quiz_id)
            .all()
        )
        return dict(rows)

    def get_attempt(self, attempt_id: int) -> Optional[QuizAttempt]:
        return self.session.get(QuizAttempt, attempt_id)

    def list_attempts_for_quiz(self, quiz_id: int) -> list:
        """Attempts joined with the attempting user, newest first."""
        return (
            self.session.query(QuizAttempt, User.full_name, User.email)
            .join(User, QuizAttempt.user_id == User.id)
            .filter(QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
            .all()
        )

    def list_attempts_for_user(self, user_id: int) -> list:
        """Attempts joined with quiz title and passing score, newest first."""
        return (
            self.session.query(QuizAttempt, Quiz.title, Quiz.passing_score)
            .join(Quiz, QuizAttempt.quiz_id == Quiz.id)
            .filter(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
            .all()
        )

    # ============================================================
    # SUBMISSION WRITE
    # ============================================================

    def create_attempt_with_answers(self, attempt: QuizAttempt, answers: List[Answer]) -> QuizAttempt:
        """
        Insert an attempt and its answer records atomically.

        Raises:
            AttemptSlotTaken: another writer claimed the same attempt_number
            StorageFailure: anything else went wrong; nothing was persisted
        """
        try:
            self.session.add(attempt)
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(
                f"Attempt slot {attempt.attempt_number} already taken: "
                f"user={attempt.user_id}, quiz={attempt.quiz_id} ({e.orig})"
            )
            raise AttemptSlotTaken("Attempt slot already taken")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to insert attempt for user={attempt.user_id}, quiz={attempt.quiz_id}")
            raise StorageFailure("Could not save quiz attempt. Please try again.")

        try:
            self._write_answers(attempt, answers)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to save answers for user={attempt.user_id}, quiz={attempt.quiz_id}")
            raise StorageFailure("Could not save quiz attempt. Please try again.")

        return attempt

    def _write_answers(self, attempt: QuizAttempt, answers: List[Answer]) -> None:
        for answer in answers:
            answer.attempt_id = attempt.id
            self.session.add(answer)
        self.session.flush()

    # ============================================================
    # AUTHORING
    # ============================================================

    def create_quiz(self, created_by: int, settings: dict, questions: List[dict]) -> Quiz:
        quiz = Quiz(created_by=created_by, **settings)
        try:
            self.session.add(quiz)
            self.session.flush()
            for data in questions:
                self.session.add(Question(quiz_id=quiz.id, **data))
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to create quiz")
            raise StorageFailure("Could not save quiz. Please try again.")
        return quiz

    def update_quiz(self, quiz: Quiz, changes: dict) -> Quiz:
        for field, value in changes.items():
            setattr(quiz, field, value)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to update quiz {quiz.id}")
            raise StorageFailure("Could not update quiz. Please try again.")
        return quiz

    def add_question(self, quiz: Quiz, data: dict) -> Question:
        taken = (
            self.session.query(Question.id)
            .filter_by(quiz_id=quiz.id, order_index=data['order_index'])
            .first()
        )
        if taken:
            raise ValidationError("order_index must be unique within a quiz", field='order_index')

        question = Question(quiz_id=quiz.id, **data)
        try:
            self.session.add(question)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError("order_index must be unique within a quiz", field='order_index')
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to add question to quiz {quiz.id}")
            raise StorageFailure("Could not save question. Please try again.")
        return question

    def update_question(self, question: Question, data: dict) -> Question:
        taken = (
            self.session.query(Question.id)
            .filter(
                Question.quiz_id == question.quiz_id,
                Question.order_index == data['order_index'],
                Question.id != question.id,
            )
            .first()
        )
        if taken:
            raise ValidationError("order_index must be unique within a quiz", field='order_index')

        for field, value in data.items():
            setattr(question, field, value)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError("order_index must be unique within a quiz", field='order_index')
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to update question {question.id}")
            raise StorageFailure("Could not save question. Please try again.")
        return question

    def delete_question(self, question: Question) -> None:
        """
        Delete a question that no attempt has answered yet.

        The reference check and the delete share one transaction. Answered
        questions are kept so past attempts still show what was asked.
        """
        question_id = question.id
        try:
            answered = (
                self.session.query(Answer.id)
                .filter_by(question_id=question_id)
                .first()
            )
            if answered:
                self.session.rollback()
                raise QuestionInUse(
                    "Question has submitted answers and cannot be deleted. "
                    "Deactivate the quiz or edit the question instead."
                )
            self.session.delete(question)
            self.session.commit()
        except IntegrityError:
            # An attempt answered it between the check and the commit
            self.session.rollback()
            raise QuestionInUse("Question has submitted answers and cannot be deleted.")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to delete question {question_id}")
            raise StorageFailure("Could not delete question. Please try again.")

    def next_order_index(self, quiz_id: int) -> int:
        highest = (
            self.session.query(func.max(Question.order_index))
            .filter_by(quiz_id=quiz_id)
            .scalar()
        )
        return (highest or 0) + 1

    def delete_quiz(self, quiz: Quiz) -> None:
        """Delete a quiz with its questions, attempts and answer records."""
        quiz_id = quiz.id
        try:
            attempt_ids = select(QuizAttempt.id).where(QuizAttempt.quiz_id == quiz_id)
            self.session.query(Answer).filter(Answer.attempt_id.in_(attempt_ids)).delete(synchronize_session=False)
            self.session.query(QuizAttempt).filter_by(quiz_id=quiz_id).delete(synchronize_session=False)
            self.session.query(Question).filter_by(quiz_id=quiz_id).delete(synchronize_session=False)
            self.session.delete(quiz)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception(f"Failed to delete quiz {quiz_id}")
            raise StorageFailure("Could not delete quiz. Please try again.")
