"""
Flask CLI commands.

``flask --app quizhub:create_app seed-demo`` creates a demo admin, a demo
student and two sample quizzes so the API can be tried straight away.
"""
import click
from flask import Flask

from quizhub import db


DEMO_USERS = [
    ('Admin User', 'admin@example.com', 'admin123', 'ADMIN'),
    ('Student User', 'student@example.com', 'student123', 'STUDENT'),
]

SAMPLE_QUIZZES = [
    {
        'title': 'Python Fundamentals Quiz',
        'description': 'Test your knowledge of basic Python concepts including variables, functions and data types.',
        'time_limit_minutes': 15,
        'passing_score': 70,
        'max_attempts': 3,
        'questions': [
            {
                'question_type': 'multiple_choice',
                'question_text': 'Which keyword defines a function in Python?',
                'options': ['def', 'func', 'function', 'lambda'],
                'correct_answer': 'def',
                'points': 2,
            },
            {
                'question_type': 'multiple_choice',
                'question_text': 'Which of the following is NOT a built-in Python type?',
                'options': ['str', 'bool', 'integer', 'float'],
                'correct_answer': 'integer',
                'points': 2,
            },
            {
                'question_type': 'true_false',
                'question_text': 'Python is case-sensitive.',
                'correct_answer': 'True',
                'points': 1,
            },
            {
                'question_type': 'short_answer',
                'question_text': 'What built-in function returns the length of a list?',
                'correct_answer': 'len',
                'points': 3,
            },
        ],
    },
    {
        'title': 'Basic Mathematics',
        'description': 'Simple arithmetic and algebra questions for beginners.',
        'time_limit_minutes': 10,
        'passing_score': 60,
        'max_attempts': 2,
        'questions': [
            {
                'question_type': 'multiple_choice',
                'question_text': 'What is 15 + 27?',
                'options': ['42', '41', '43', '40'],
                'correct_answer': '42',
            },
            {
                'question_type': 'true_false',
                'question_text': 'Zero is an even number.',
                'correct_answer': 'True',
            },
            {
                'question_type': 'short_answer',
                'question_text': 'What is 9 multiplied by 7?',
                'correct_answer': '63',
                'points': 2,
            },
        ],
    },
]


def seed_demo_data(replace: bool = False) -> dict:
    """
    Create the demo users and sample quizzes.

    Existing demo users are kept unless ``replace`` is set; sample quizzes
    are only created when no quiz with the same title exists.
    """
    from quizhub.auth.models import User
    from quizhub.auth.utils import hash_password
    from quizhub.quiz.models import Quiz
    from quizhub.quiz.store import QuizStore
    from quizhub.quiz.validation import validate_questions, validate_quiz_payload

    created = {'users': [], 'quizzes': []}

    for full_name, email, password, role in DEMO_USERS:
        user = db.session.query(User).filter_by(email=email).first()
        if user and not replace:
            continue
        if user is None:
            user = User(email=email)
            db.session.add(user)
        user.full_name = full_name
        user.password_hash = hash_password(password)
        user.role = role
        created['users'].append(email)
    db.session.commit()

    admin = db.session.query(User).filter_by(email=DEMO_USERS[0][1]).one()
    store = QuizStore()
    for sample in SAMPLE_QUIZZES:
        if db.session.query(Quiz.id).filter_by(title=sample['title']).first():
            continue
        settings = validate_quiz_payload(sample)
        questions = validate_questions(sample['questions'])
        store.create_quiz(admin.id, settings, questions)
        created['quizzes'].append(sample['title'])

    return created


def register_commands(app: Flask) -> None:
    @app.cli.command('seed-demo')
    @click.option('--replace', is_flag=True, help='Reset the demo users\' passwords and roles.')
    def seed_demo(replace):
        """Create demo users and sample quizzes."""
        created = seed_demo_data(replace=replace)
        for email in created['users']:
            click.echo(f"User ready: {email}")
        for title in created['quizzes']:
            click.echo(f"Quiz created: {title}")
        if not created['users'] and not created['quizzes']:
            click.echo("Demo data already present.")
        click.echo("Login with admin@example.com / admin123 or student@example.com / student123")
