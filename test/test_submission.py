"""
Test cases for the submission service, run against an in-memory store.
"""
import itertools
import threading
import time
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from quizhub.auth.models import ROLE_ADMIN, ROLE_STUDENT
from quizhub.quiz.access import Principal
from quizhub.quiz.errors import (
    AttemptLimitExceeded,
    AttemptSlotTaken,
    NoQuestions,
    QuizNotFound,
    StorageFailure,
    ValidationError,
)
from quizhub.quiz.locks import AttemptLocks
from quizhub.quiz.submission import SubmissionService


NOW = datetime(2026, 3, 14, 9, 30, 0)
STUDENT = Principal(user_id=7, role=ROLE_STUDENT)
ADMIN = Principal(user_id=1, role=ROLE_ADMIN)


class InMemoryStore:
    """Stands in for QuizStore; enforces the attempt slot constraint and atomic writes."""

    def __init__(self, quiz, questions, count_delay=0.0):
        self.quizzes = {quiz.id: quiz}
        self.questions = {quiz.id: list(questions)}
        self.attempts = []
        self.answers = []
        self.fail_answer_write = False
        self.count_delay = count_delay
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get_quiz(self, quiz_id):
        return self.quizzes.get(quiz_id)

    def get_questions(self, quiz_id):
        return sorted(self.questions.get(quiz_id, []), key=lambda q: q.order_index)

    def count_attempts(self, user_id, quiz_id):
        count = sum(1 for a in self.attempts if a.user_id == user_id and a.quiz_id == quiz_id)
        if self.count_delay:
            time.sleep(self.count_delay)
        return count

    def create_attempt_with_answers(self, attempt, answers):
        with self._lock:
            slot = (attempt.quiz_id, attempt.user_id, attempt.attempt_number)
            if any((a.quiz_id, a.user_id, a.attempt_number) == slot for a in self.attempts):
                raise AttemptSlotTaken("Attempt slot already taken")

            attempt.id = next(self._ids)
            self.attempts.append(attempt)
            if self.fail_answer_write:
                # Roll back the attempt row inserted above
                self.attempts.remove(attempt)
                raise StorageFailure("Could not save quiz attempt. Please try again.")

            for answer in answers:
                answer.attempt_id = attempt.id
            self.answers.extend(answers)
            return attempt


def _quiz(**overrides):
    settings = dict(id=10, is_active=True, passing_score=70, max_attempts=3)
    settings.update(overrides)
    return SimpleNamespace(**settings)


def _questions():
    return [
        SimpleNamespace(id=101, correct_answer='Paris', points=2, order_index=1),
        SimpleNamespace(id=102, correct_answer='Nile', points=3, order_index=2),
    ]


def _service(store, locks=None):
    return SubmissionService(store=store, locks=locks or AttemptLocks(), clock=lambda: NOW)


class TestScoring:
    """Test cases for the graded result."""

    def test_partial_score_fails(self):
        store = InMemoryStore(_quiz(), _questions())
        result = _service(store).submit_quiz(10, STUDENT, [
            {'question_id': 101, 'answer': 'Paris'},
            {'question_id': 102, 'answer': 'Amazon'},
        ])
        assert result['earned_points'] == 2
        assert result['total_points'] == 5
        assert result['score'] == 40
        assert result['passed'] is False
        assert result['passing_score'] == 70
        assert result['attempts_remaining'] == 2

    def test_full_score_passes(self):
        store = InMemoryStore(_quiz(), _questions())
        result = _service(store).submit_quiz(10, STUDENT, [
            {'question_id': 101, 'answer': ' paris'},
            {'question_id': 102, 'answer': 'NILE '},
        ])
        assert result['earned_points'] == 5
        assert result['score'] == 100
        assert result['passed'] is True

    def test_score_exactly_at_passing_score_passes(self):
        questions = [SimpleNamespace(id=i, correct_answer='a', points=1, order_index=i) for i in range(1, 11)]
        store = InMemoryStore(_quiz(), questions)
        answers = [{'question_id': i, 'answer': 'a' if i <= 7 else 'b'} for i in range(1, 11)]
        result = _service(store).submit_quiz(10, STUDENT, answers)
        assert result['score'] == 70
        assert result['passed'] is True

    def test_unanswered_questions_score_zero(self):
        store = InMemoryStore(_quiz(), _questions())
        result = _service(store).submit_quiz(10, STUDENT, [{'question_id': 102, 'answer': 'Nile'}])
        assert result['earned_points'] == 3
        assert result['score'] == 60

        unanswered = [a for a in store.answers if a.question_id == 101]
        assert len(unanswered) == 1
        assert unanswered[0].answer_text == ''
        assert unanswered[0].is_correct is False
        assert unanswered[0].points_earned == 0

    def test_empty_submission_scores_zero(self):
        store = InMemoryStore(_quiz(), _questions())
        result = _service(store).submit_quiz(10, STUDENT, [])
        assert result['score'] == 0
        assert result['passed'] is False

    def test_answers_for_unknown_questions_are_ignored(self):
        store = InMemoryStore(_quiz(), _questions())
        result = _service(store).submit_quiz(10, STUDENT, [
            {'question_id': 101, 'answer': 'Paris'},
            {'question_id': 999, 'answer': 'Nile'},
        ])
        assert result['earned_points'] == 2
        assert {a.question_id for a in store.answers} == {101, 102}

    def test_one_answer_record_per_question(self):
        store = InMemoryStore(_quiz(), _questions())
        result = _service(store).submit_quiz(10, STUDENT, [{'question_id': 101, 'answer': 'Paris'}])
        assert len(store.answers) == 2
        assert all(a.attempt_id == result['attempt_id'] for a in store.answers)

    def test_attempt_row_fields(self):
        store = InMemoryStore(_quiz(), _questions())
        _service(store).submit_quiz(10, STUDENT, [], time_spent_seconds=90)
        attempt = store.attempts[0]
        assert attempt.user_id == STUDENT.user_id
        assert attempt.attempt_number == 1
        assert attempt.completed_at == NOW
        assert attempt.started_at == NOW - timedelta(seconds=90)
        assert attempt.time_spent_seconds == 90

    def test_attempt_numbers_increase(self):
        store = InMemoryStore(_quiz(max_attempts=None), _questions())
        service = _service(store)
        for _ in range(3):
            service.submit_quiz(10, STUDENT, [])
        assert [a.attempt_number for a in store.attempts] == [1, 2, 3]


class TestRejections:
    """Test cases for submissions that must not record an attempt."""

    def test_missing_quiz(self):
        store = InMemoryStore(_quiz(), _questions())
        with pytest.raises(QuizNotFound):
            _service(store).submit_quiz(999, STUDENT, [])

    def test_inactive_quiz_is_not_found(self):
        store = InMemoryStore(_quiz(is_active=False), _questions())
        with pytest.raises(QuizNotFound):
            _service(store).submit_quiz(10, STUDENT, [])
        with pytest.raises(QuizNotFound):
            _service(store).submit_quiz(10, ADMIN, [])
        assert store.attempts == []

    def test_quiz_without_questions(self):
        store = InMemoryStore(_quiz(), [])
        with pytest.raises(NoQuestions):
            _service(store).submit_quiz(10, STUDENT, [])
        assert store.attempts == []
        assert store.answers == []

    def test_attempt_limit(self):
        store = InMemoryStore(_quiz(max_attempts=2), _questions())
        service = _service(store)
        service.submit_quiz(10, STUDENT, [])
        service.submit_quiz(10, STUDENT, [])

        with pytest.raises(AttemptLimitExceeded):
            service.submit_quiz(10, STUDENT, [])
        assert len(store.attempts) == 2

    def test_limit_is_per_user(self):
        store = InMemoryStore(_quiz(max_attempts=1), _questions())
        service = _service(store)
        service.submit_quiz(10, STUDENT, [])
        result = service.submit_quiz(10, Principal(user_id=8, role=ROLE_STUDENT), [])
        assert result['attempts_remaining'] == 0

    def test_malformed_answers_do_not_consume_an_attempt(self):
        store = InMemoryStore(_quiz(max_attempts=1), _questions())
        with pytest.raises(ValidationError):
            _service(store).submit_quiz(10, STUDENT, [{'question_id': 'abc', 'answer': 'Paris'}])
        assert store.attempts == []

    def test_invalid_time_spent(self):
        store = InMemoryStore(_quiz(), _questions())
        with pytest.raises(ValidationError):
            _service(store).submit_quiz(10, STUDENT, [], time_spent_seconds=-5)


class TestAtomicity:
    """Test cases for all-or-nothing persistence."""

    def test_failed_answer_write_leaves_no_attempt(self):
        store = InMemoryStore(_quiz(), _questions())
        store.fail_answer_write = True

        with pytest.raises(StorageFailure) as exc:
            _service(store).submit_quiz(10, STUDENT, [{'question_id': 101, 'answer': 'Paris'}])

        assert exc.value.retryable is True
        assert store.attempts == []
        assert store.answers == []

    def test_retry_after_failure_succeeds(self):
        store = InMemoryStore(_quiz(max_attempts=1), _questions())
        service = _service(store)
        store.fail_answer_write = True
        with pytest.raises(StorageFailure):
            service.submit_quiz(10, STUDENT, [])

        store.fail_answer_write = False
        result = service.submit_quiz(10, STUDENT, [])
        assert result['attempts_remaining'] == 0
        assert len(store.attempts) == 1


class TestConcurrency:
    """Test cases for simultaneous submissions by the same user."""

    def _race(self, services, store):
        barrier = threading.Barrier(len(services))
        outcomes = []
        outcomes_lock = threading.Lock()

        def submit(service):
            barrier.wait()
            try:
                result = service.submit_quiz(10, STUDENT, [{'question_id': 101, 'answer': 'Paris'}])
                outcome = ('ok', result['attempt_id'])
            except AttemptLimitExceeded:
                outcome = ('limit', None)
            with outcomes_lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=submit, args=(s,)) for s in services]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        return outcomes

    def test_double_submit_same_process(self):
        store = InMemoryStore(_quiz(max_attempts=1), _questions(), count_delay=0.05)
        locks = AttemptLocks()
        outcomes = self._race([_service(store, locks), _service(store, locks)], store)

        assert sorted(kind for kind, _ in outcomes) == ['limit', 'ok']
        assert len(store.attempts) == 1

    def test_double_submit_across_processes(self):
        # Separate lock registries: only the slot constraint stands between the two writers
        store = InMemoryStore(_quiz(max_attempts=1), _questions(), count_delay=0.05)
        outcomes = self._race([_service(store, AttemptLocks()), _service(store, AttemptLocks())], store)

        assert sorted(kind for kind, _ in outcomes) == ['limit', 'ok']
        assert len(store.attempts) == 1
        assert len(store.answers) == 2

    def test_many_concurrent_submits_respect_limit(self):
        store = InMemoryStore(_quiz(max_attempts=3), _questions(), count_delay=0.01)
        locks = AttemptLocks()
        outcomes = self._race([_service(store, locks) for _ in range(8)], store)

        assert [kind for kind, _ in outcomes].count('ok') == 3
        assert len(store.attempts) == 3
        assert sorted(a.attempt_number for a in store.attempts) == [1, 2, 3]


class TestAttemptLocks:
    """Test cases for the per-(user, quiz) lock registry."""

    def test_unused_locks_are_released(self):
        locks = AttemptLocks()
        with locks.hold(1, 2):
            assert len(locks) == 1
        assert len(locks) == 0

    def test_different_keys_do_not_block(self):
        locks = AttemptLocks()
        with locks.hold(1, 2):
            acquired = threading.Event()

            def other():
                with locks.hold(1, 3):
                    acquired.set()

            thread = threading.Thread(target=other)
            thread.start()
            thread.join(timeout=2)
            assert acquired.is_set()
