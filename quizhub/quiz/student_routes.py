"""
Quiz-taking routes.

Any signed-in user can:
- List the quizzes visible to them with their attempt counts
- View a quiz with its questions
- Submit answers for grading
- Review their own attempt history and attempt details
"""
from flask import jsonify, request, current_app
from flask_login import login_required, current_user

from quizhub.quiz import quiz_bp
from quizhub.quiz.access import Principal, require_view
from quizhub.quiz.errors import Forbidden, QuizNotFound, ValidationError
from quizhub.quiz.policy import attempts_remaining, can_attempt
from quizhub.quiz.store import QuizStore
from quizhub.quiz.submission import SubmissionService
from quizhub.security.rate_limiter import rate_limit


@quiz_bp.route('', methods=['GET'])
@login_required
def list_quizzes():
    """
    List quizzes visible to the caller.
    Admins see every quiz, everyone else only active ones.
    """
    principal = Principal.from_user(current_user)
    store = QuizStore()

    quizzes = store.list_quizzes(include_inactive=principal.is_admin)
    quiz_ids = [quiz.id for quiz in quizzes]
    stats = store.question_stats(quiz_ids)
    counts = store.attempt_counts_for_user(principal.user_id, quiz_ids)

    quizzes_data = []
    for quiz in quizzes:
        question_count, total_points = stats.get(quiz.id, (0, 0))
        attempts_count = counts.get(quiz.id, 0)
        quiz_data = quiz.to_dict()
        quiz_data.update({
            'question_count': question_count,
            'total_points': total_points,
            'attempts_count': attempts_count,
            'attempts_remaining': attempts_remaining(attempts_count, quiz),
            'can_take': can_attempt(attempts_count, quiz) and question_count > 0,
        })
        quizzes_data.append(quiz_data)

    return jsonify({'success': True, 'quizzes': quizzes_data}), 200


@quiz_bp.route('/<int:quiz_id>', methods=['GET'])
@login_required
def get_quiz(quiz_id):
    """Quiz detail with ordered questions; correct answers only for admins."""
    principal = Principal.from_user(current_user)
    store = QuizStore()

    quiz = store.get_quiz(quiz_id)
    if quiz is None:
        raise QuizNotFound("Quiz not found")
    require_view(principal, quiz)

    questions = store.get_questions(quiz.id)
    attempts_count = store.count_attempts(principal.user_id, quiz.id)

    quiz_data = quiz.to_dict()
    quiz_data.update({
        'questions': [q.to_dict(include_answer=principal.is_admin) for q in questions],
        'question_count': len(questions),
        'total_points': sum(q.points for q in questions),
        'attempts_count': attempts_count,
        'attempts_remaining': attempts_remaining(attempts_count, quiz),
    })
    return jsonify({'success': True, 'quiz': quiz_data}), 200


@quiz_bp.route('/<int:quiz_id>/submit', methods=['POST'])
@login_required
@rate_limit(max_requests=30, window_seconds=60, per='user', config_prefix='SUBMIT_RATE',
            error_message="Too many submissions. Please wait before trying again.")
def submit_quiz(quiz_id):
    """
    Grade a submission and record it as a new attempt.

    Body: ``{"answers": [{"question_id": 1, "answer": "Paris"}], "time_spent_seconds": 42}``
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    result = SubmissionService().submit_quiz(
        quiz_id,
        Principal.from_user(current_user),
        data.get('answers'),
        data.get('time_spent_seconds'),
    )

    message = 'Quiz passed' if result['passed'] else 'Quiz submitted'
    return jsonify({'success': True, 'message': message, 'result': result}), 201


@quiz_bp.route('/history', methods=['GET'])
@login_required
def attempt_history():
    """The caller's own attempts, newest first."""
    rows = QuizStore().list_attempts_for_user(current_user.id)

    attempts_data = []
    for attempt, quiz_title, passing_score in rows:
        attempt_data = attempt.to_dict()
        attempt_data['quiz_title'] = quiz_title
        attempt_data['passing_score'] = passing_score
        attempts_data.append(attempt_data)

    return jsonify({'success': True, 'attempts': attempts_data}), 200


@quiz_bp.route('/attempts/<int:attempt_id>', methods=['GET'])
@login_required
def get_attempt(attempt_id):
    """Attempt detail with its graded answer records. Owner or admin only."""
    principal = Principal.from_user(current_user)
    attempt = QuizStore().get_attempt(attempt_id)
    if attempt is None:
        return jsonify({'success': False, 'error': 'Attempt not found'}), 404
    if attempt.user_id != principal.user_id and not principal.is_admin:
        raise Forbidden("You can only view your own attempts")

    quiz = attempt.quiz
    attempt_data = attempt.to_dict()
    attempt_data['quiz_title'] = quiz.title
    attempt_data['passing_score'] = quiz.passing_score

    answers_data = []
    for answer in attempt.answers:
        answer_data = answer.to_dict()
        question = answer.question
        answer_data['question_text'] = question.question_text
        answer_data['points'] = question.points
        answer_data['order_index'] = question.order_index
        answers_data.append(answer_data)
    attempt_data['answers'] = sorted(answers_data, key=lambda a: a['order_index'])

    current_app.logger.debug(f"Attempt {attempt_id} viewed by user {principal.user_id}")
    return jsonify({'success': True, 'attempt': attempt_data}), 200
