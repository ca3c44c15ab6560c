"""
Administrator routes for quiz management.

Administrators can:
- Create quizzes, optionally with their questions
- Update and delete quizzes
- Add, edit and delete the questions of a quiz
- View quiz results and user attempts
"""
from flask import jsonify, request, current_app
from flask_login import login_required, current_user

from quizhub.common.decorators import admin_required
from quizhub.quiz import quiz_bp
from quizhub.quiz.access import ACTION_CREATE, ACTION_DELETE, ACTION_UPDATE, Principal, require_mutate
from quizhub.quiz.errors import QuestionNotFound, QuizNotFound, ValidationError
from quizhub.quiz.store import QuizStore
from quizhub.quiz.validation import validate_question_payload, validate_questions, validate_quiz_payload


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _load_quiz(store: QuizStore, quiz_id: int):
    quiz = store.get_quiz(quiz_id)
    if quiz is None:
        raise QuizNotFound("Quiz not found")
    return quiz


def _load_question(store: QuizStore, quiz_id: int, question_id: int):
    question = store.get_question(quiz_id, question_id)
    if question is None:
        raise QuestionNotFound("Question not found")
    return question


@quiz_bp.route('', methods=['POST'])
@login_required
def create_quiz():
    """
    Create a new quiz.

    Expected JSON:
    {
        "title": "Quiz Title",
        "description": "Optional description",
        "time_limit_minutes": 30,  // Optional
        "passing_score": 70,  // Optional, default from config
        "max_attempts": 3,  // Optional, null for unlimited
        "questions": [ ... ]  // Optional
    }
    """
    principal = Principal.from_user(current_user)
    require_mutate(principal, None, ACTION_CREATE)

    data = _json_body()
    settings = validate_quiz_payload(data)
    questions = validate_questions(data.get('questions'))

    quiz = QuizStore().create_quiz(principal.user_id, settings, questions)
    current_app.logger.info(
        f"Quiz created: id={quiz.id}, questions={len(questions)}, by user {principal.user_id}"
    )

    quiz_data = quiz.to_dict()
    quiz_data['question_count'] = len(questions)
    quiz_data['total_points'] = sum(q['points'] for q in questions)
    return jsonify({'success': True, 'message': 'Quiz created successfully', 'quiz': quiz_data}), 201


@quiz_bp.route('/<int:quiz_id>', methods=['PUT', 'PATCH'])
@login_required
def update_quiz(quiz_id):
    """Update quiz settings. Only the fields present in the body change."""
    principal = Principal.from_user(current_user)
    store = QuizStore()
    quiz = _load_quiz(store, quiz_id)
    require_mutate(principal, quiz, ACTION_UPDATE)

    data = _json_body()
    if 'questions' in data:
        raise ValidationError(
            "Questions are edited through /questions/<question_id>, not the quiz update",
            field='questions'
        )
    changes = validate_quiz_payload(data, partial=True)
    quiz = store.update_quiz(quiz, changes)
    current_app.logger.info(f"Quiz {quiz.id} updated by user {principal.user_id}: {sorted(changes)}")

    return jsonify({'success': True, 'message': 'Quiz updated successfully', 'quiz': quiz.to_dict()}), 200


@quiz_bp.route('/<int:quiz_id>', methods=['DELETE'])
@login_required
def delete_quiz(quiz_id):
    """Delete a quiz with its questions, attempts and answer records."""
    principal = Principal.from_user(current_user)
    store = QuizStore()
    quiz = _load_quiz(store, quiz_id)
    require_mutate(principal, quiz, ACTION_DELETE)

    store.delete_quiz(quiz)
    current_app.logger.info(f"Quiz {quiz_id} deleted by user {principal.user_id}")

    return jsonify({'success': True, 'message': 'Quiz deleted successfully'}), 200


@quiz_bp.route('/<int:quiz_id>/questions', methods=['POST'])
@login_required
def add_question(quiz_id):
    """
    Add a question to a quiz.

    Expected JSON:
    {
        "question_type": "multiple_choice",  // or "true_false", "short_answer"
        "question_text": "What is the capital of France?",
        "options": ["Paris", "London"],  // multiple_choice only
        "correct_answer": "Paris",
        "points": 1,  // Optional, default 1
        "order_index": 1  // Optional, appended after the last question
    }
    """
    principal = Principal.from_user(current_user)
    store = QuizStore()
    quiz = _load_quiz(store, quiz_id)
    require_mutate(principal, quiz, ACTION_UPDATE)

    data = validate_question_payload(_json_body(), default_order=store.next_order_index(quiz.id))
    question = store.add_question(quiz, data)

    return jsonify({
        'success': True,
        'message': 'Question added successfully',
        'question': question.to_dict(include_answer=True)
    }), 201


@quiz_bp.route('/<int:quiz_id>/questions/<int:question_id>', methods=['PUT', 'PATCH'])
@login_required
def update_question(quiz_id, question_id):
    """
    Edit a question. Omitted fields keep their current value.

    Changing ``question_type`` without sending ``options`` drops the old
    options, since they only fit the previous type.
    """
    principal = Principal.from_user(current_user)
    store = QuizStore()
    quiz = _load_quiz(store, quiz_id)
    require_mutate(principal, quiz, ACTION_UPDATE)
    question = _load_question(store, quiz.id, question_id)

    body = _json_body()
    merged = {
        'question_type': question.question_type,
        'question_text': question.question_text,
        'options': question.options,
        'correct_answer': question.correct_answer,
        'points': question.points,
        'order_index': question.order_index,
    }
    if body.get('question_type', question.question_type) != question.question_type and 'options' not in body:
        merged['options'] = None
    merged.update(body)

    data = validate_question_payload(merged, default_order=question.order_index)
    question = store.update_question(question, data)
    current_app.logger.info(f"Question {question.id} of quiz {quiz.id} updated by user {principal.user_id}")

    return jsonify({
        'success': True,
        'message': 'Question updated successfully',
        'question': question.to_dict(include_answer=True)
    }), 200


@quiz_bp.route('/<int:quiz_id>/questions/<int:question_id>', methods=['DELETE'])
@login_required
def delete_question(quiz_id, question_id):
    """Delete a question no attempt has answered."""
    principal = Principal.from_user(current_user)
    store = QuizStore()
    quiz = _load_quiz(store, quiz_id)
    require_mutate(principal, quiz, ACTION_UPDATE)
    question = _load_question(store, quiz.id, question_id)

    store.delete_question(question)
    current_app.logger.info(f"Question {question_id} of quiz {quiz.id} deleted by user {principal.user_id}")

    return jsonify({'success': True, 'message': 'Question deleted successfully'}), 200


@quiz_bp.route('/<int:quiz_id>/results', methods=['GET'])
@login_required
@admin_required
def quiz_results(quiz_id):
    """Every attempt on a quiz with the attempting user, plus summary statistics."""
    store = QuizStore()
    quiz = _load_quiz(store, quiz_id)
    rows = store.list_attempts_for_quiz(quiz.id)

    attempts_data = []
    for attempt, full_name, email in rows:
        attempt_data = attempt.to_dict()
        attempt_data['user_name'] = full_name
        attempt_data['user_email'] = email
        attempts_data.append(attempt_data)

    scores = [a.score for a, _, _ in rows if a.score is not None]
    passed_attempts = sum(1 for a, _, _ in rows if a.passed)
    total_attempts = len(rows)

    statistics = {
        'total_attempts': total_attempts,
        'passed_attempts': passed_attempts,
        'pass_rate': round(passed_attempts * 100 / total_attempts, 2) if total_attempts else 0,
        'average_score': round(sum(scores) / len(scores), 2) if scores else 0,
        'passing_score': quiz.passing_score,
    }

    return jsonify({
        'success': True,
        'quiz': quiz.to_dict(),
        'attempts': attempts_data,
        'statistics': statistics
    }), 200
