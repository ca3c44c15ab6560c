"""Initial quiz schema

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-10-19 10:12:03.418552

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = '3f9c2a71d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    tables = inspector.get_table_names()

    # Create users table
    if 'users' not in tables:
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('full_name', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='STUDENT'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create quizzes table
    if 'quizzes' not in tables:
        op.create_table('quizzes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
            sa.Column('passing_score', sa.Integer(), nullable=False, server_default='70'),
            sa.Column('max_attempts', sa.Integer(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
            sa.Column('created_by', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['created_by'], ['users.id']),
            sa.CheckConstraint('passing_score >= 0 AND passing_score <= 100', name='ck_quizzes_passing_score'),
            sa.CheckConstraint('max_attempts IS NULL OR max_attempts >= 1', name='ck_quizzes_max_attempts'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quizzes_is_active', 'quizzes', ['is_active'], unique=False)
        op.create_index('ix_quizzes_created_by', 'quizzes', ['created_by'], unique=False)
        op.create_index('ix_quizzes_created_at', 'quizzes', ['created_at'], unique=False)

    # Create quiz_questions table
    if 'quiz_questions' not in tables:
        op.create_table('quiz_questions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('question_type', sa.String(length=50), nullable=False),
            sa.Column('question_text', sa.Text(), nullable=False),
            sa.Column('options', sa.JSON(), nullable=True),
            sa.Column('correct_answer', sa.Text(), nullable=False),
            sa.Column('points', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('order_index', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.UniqueConstraint('quiz_id', 'order_index', name='uq_question_quiz_order'),
            sa.CheckConstraint('points >= 1', name='ck_quiz_questions_points'),
            sa.CheckConstraint('order_index >= 1', name='ck_quiz_questions_order_index'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_questions_quiz_id', 'quiz_questions', ['quiz_id'], unique=False)

    # Create quiz_attempts table
    if 'quiz_attempts' not in tables:
        op.create_table('quiz_attempts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('attempt_number', sa.Integer(), nullable=False),
            sa.Column('score', sa.Integer(), nullable=True),
            sa.Column('total_points', sa.Integer(), nullable=True),
            sa.Column('earned_points', sa.Integer(), nullable=True),
            sa.Column('passed', sa.Boolean(), nullable=True),
            sa.Column('started_at', sa.DateTime(), nullable=False),
            sa.Column('completed_at', sa.DateTime(), nullable=True),
            sa.Column('time_spent_seconds', sa.Integer(), nullable=True),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id']),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.UniqueConstraint('quiz_id', 'user_id', 'attempt_number', name='uq_attempt_slot'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_attempts_quiz_id', 'quiz_attempts', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_attempts_user_id', 'quiz_attempts', ['user_id'], unique=False)
        op.create_index('ix_quiz_attempts_started_at', 'quiz_attempts', ['started_at'], unique=False)
        op.create_index('ix_quiz_attempts_quiz_user', 'quiz_attempts', ['quiz_id', 'user_id'], unique=False)

    # Create quiz_answers table
    if 'quiz_answers' not in tables:
        op.create_table('quiz_answers',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('attempt_id', sa.Integer(), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=False),
            sa.Column('answer_text', sa.Text(), nullable=False),
            sa.Column('is_correct', sa.Boolean(), nullable=False),
            sa.Column('points_earned', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['attempt_id'], ['quiz_attempts.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['question_id'], ['quiz_questions.id']),
            sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_question'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_quiz_answers_attempt_id', 'quiz_answers', ['attempt_id'], unique=False)
        op.create_index('ix_quiz_answers_question_id', 'quiz_answers', ['question_id'], unique=False)


def downgrade():
    op.drop_table('quiz_answers')
    op.drop_table('quiz_attempts')
    op.drop_table('quiz_questions')
    op.drop_table('quizzes')
    op.drop_table('users')
