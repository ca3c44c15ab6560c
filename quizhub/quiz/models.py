"""
Database models for quiz functionality.

Supports three question types:
- multiple_choice: options stored as an ordered JSON list of strings
- true_false: no stored options, implicitly "True" / "False"
- short_answer: free text, no options

All three are graded the same way: normalized exact match against
``correct_answer``.
"""
from datetime import datetime

from quizhub import db


MULTIPLE_CHOICE = "multiple_choice"
TRUE_FALSE = "true_false"
SHORT_ANSWER = "short_answer"
QUESTION_TYPES = (MULTIPLE_CHOICE, TRUE_FALSE, SHORT_ANSWER)

TRUE_FALSE_CHOICES = ["True", "False"]


class Quiz(db.Model):
    """A quiz authored by an administrator."""
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    time_limit_minutes = db.Column(db.Integer, nullable=True)  # NULL = no limit
    passing_score = db.Column(db.Integer, nullable=False, default=70)  # Percentage 0-100
    max_attempts = db.Column(db.Integer, nullable=True)  # NULL = unlimited
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = db.relationship("User", foreign_keys=[created_by])

    __table_args__ = (
        db.CheckConstraint('passing_score >= 0 AND passing_score <= 100', name='ck_quizzes_passing_score'),
        db.CheckConstraint('max_attempts IS NULL OR max_attempts >= 1', name='ck_quizzes_max_attempts'),
    )

    def __repr__(self) -> str:
        return f"<Quiz {self.id}: {self.title}>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'time_limit_minutes': self.time_limit_minutes,
            'passing_score': self.passing_score,
            'max_attempts': self.max_attempts,
            'is_active': self.is_active,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Question(db.Model):
    """A question belonging to exactly one quiz."""
    __tablename__ = "quiz_questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    question_type = db.Column(db.String(50), nullable=False, default=MULTIPLE_CHOICE)
    question_text = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=True)  # multiple_choice only
    correct_answer = db.Column(db.Text, nullable=False)
    points = db.Column(db.Integer, nullable=False, default=1)
    order_index = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'order_index', name='uq_question_quiz_order'),
        db.CheckConstraint('points >= 1', name='ck_quiz_questions_points'),
        db.CheckConstraint('order_index >= 1', name='ck_quiz_questions_order_index'),
    )

    def __repr__(self) -> str:
        return f"<Question {self.id}: {self.question_type}>"

    @property
    def choices(self) -> list:
        """Options presented to the student for this question type."""
        if self.question_type == MULTIPLE_CHOICE:
            return list(self.options or [])
        if self.question_type == TRUE_FALSE:
            return list(TRUE_FALSE_CHOICES)
        return []

    def to_dict(self, include_answer: bool = False) -> dict:
        data = {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'question_type': self.question_type,
            'question_text': self.question_text,
            'options': self.choices,
            'points': self.points,
            'order_index': self.order_index,
        }
        if include_answer:
            data['correct_answer'] = self.correct_answer
        return data


class QuizAttempt(db.Model):
    """
    One graded submission of a quiz by a user.

    ``attempt_number`` is the 1-based slot within (quiz, user); the unique
    constraint on it rejects two writers claiming the same slot.
    """
    __tablename__ = "quiz_attempts"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    attempt_number = db.Column(db.Integer, nullable=False)
    score = db.Column(db.Integer, nullable=True)  # Percentage score
    total_points = db.Column(db.Integer, nullable=True)
    earned_points = db.Column(db.Integer, nullable=True)
    passed = db.Column(db.Boolean, nullable=True)
    started_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    time_spent_seconds = db.Column(db.Integer, nullable=True)

    quiz = db.relationship("Quiz", foreign_keys=[quiz_id])
    user = db.relationship("User", foreign_keys=[user_id])
    answers = db.relationship("Answer", backref="attempt", lazy="dynamic", order_by="Answer.id")

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'user_id', 'attempt_number', name='uq_attempt_slot'),
        db.Index('ix_quiz_attempts_quiz_user', 'quiz_id', 'user_id'),
    )

    def __repr__(self) -> str:
        return f"<QuizAttempt {self.id}: User {self.user_id}, Quiz {self.quiz_id}>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'user_id': self.user_id,
            'attempt_number': self.attempt_number,
            'score': self.score,
            'total_points': self.total_points,
            'earned_points': self.earned_points,
            'passed': self.passed,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'time_spent_seconds': self.time_spent_seconds,
        }


class Answer(db.Model):
    """The graded outcome of one question within one attempt."""
    __tablename__ = "quiz_answers"

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey("quiz_attempts.id", ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("quiz_questions.id"), nullable=False, index=True)
    answer_text = db.Column(db.Text, nullable=False, default="")
    is_correct = db.Column(db.Boolean, nullable=False)
    points_earned = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    question = db.relationship("Question", foreign_keys=[question_id])

    __table_args__ = (
        db.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_question'),
    )

    def __repr__(self) -> str:
        return f"<Answer {self.id}: Question {self.question_id}>"

    def to_dict(self) -> dict:
        return {
            'question_id': self.question_id,
            'answer': self.answer_text,
            'is_correct': self.is_correct,
            'points_earned': self.points_earned,
        }
