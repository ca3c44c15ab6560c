"""
Pytest configuration and fixtures for testing.

Each test gets a fresh app on an in-memory SQLite database. Factories
open their own app context and return ids, so request handling in the
test client never shares Flask-Login state with test setup code.
"""
import itertools
import os

import pytest

# Set test environment variables BEFORE importing the app
os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'sfndsfojoriwew09rjfjndsknfkj'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['MIN_PASSWORD_LENGTH'] = '6'
os.environ['DEFAULT_PASSING_SCORE'] = '70'
os.environ['DEFAULT_MAX_ATTEMPTS'] = '3'
os.environ['BCRYPT_ROUNDS'] = '4'

from quizhub import create_app, db  # noqa: E402
from quizhub.auth.models import ROLE_ADMIN, ROLE_STUDENT, User  # noqa: E402
from quizhub.auth.utils import hash_password  # noqa: E402
from quizhub.quiz.models import Question, Quiz  # noqa: E402
from quizhub.security.rate_limiter import get_rate_limiter  # noqa: E402


TEST_PASSWORD = 'password123'

# Two questions worth 2 and 3 points
GEOGRAPHY_QUESTIONS = [
    {
        'question_type': 'multiple_choice',
        'question_text': 'What is the capital of France?',
        'options': ['Paris', 'London', 'Berlin'],
        'correct_answer': 'Paris',
        'points': 2,
        'order_index': 1,
    },
    {
        'question_type': 'short_answer',
        'question_text': 'Which river flows through Cairo?',
        'options': None,
        'correct_answer': 'Nile',
        'points': 3,
        'order_index': 2,
    },
]


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    })
    get_rate_limiter().reset_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
    get_rate_limiter().reset_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_user(app, password_hash):
    """Factory: create a user and return its id."""
    counter = itertools.count(1)

    def _make(role=ROLE_STUDENT, email=None, full_name=None):
        n = next(counter)
        with app.app_context():
            user = User(
                email=email or f'user{n}@example.com',
                full_name=full_name or f'Test User {n}',
                password_hash=password_hash,
                role=role,
            )
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make


@pytest.fixture
def admin_id(make_user):
    return make_user(role=ROLE_ADMIN, email='admin@example.com', full_name='Admin User')


@pytest.fixture
def student_id(make_user):
    return make_user(role=ROLE_STUDENT, email='student@example.com', full_name='Student User')


@pytest.fixture
def make_quiz(app, admin_id):
    """Factory: create a quiz with questions and return (quiz_id, [question_ids])."""

    def _make(questions=None, **settings):
        if questions is None:
            questions = GEOGRAPHY_QUESTIONS
        with app.app_context():
            quiz = Quiz(
                title=settings.pop('title', 'Geography Basics'),
                created_by=settings.pop('created_by', admin_id),
                passing_score=settings.pop('passing_score', 70),
                max_attempts=settings.pop('max_attempts', 3),
                is_active=settings.pop('is_active', True),
                **settings
            )
            db.session.add(quiz)
            db.session.flush()
            rows = [Question(quiz_id=quiz.id, **q) for q in questions]
            db.session.add_all(rows)
            db.session.commit()
            return quiz.id, [q.id for q in rows]

    return _make


@pytest.fixture
def login(client):
    """Sign a user into the test client's session by id."""

    def _login(user_id):
        with client.session_transaction() as sess:
            sess['_user_id'] = str(user_id)
            sess['_fresh'] = True

    return _login
