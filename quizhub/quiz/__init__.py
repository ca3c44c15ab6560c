"""
Quiz module for authoring quizzes and grading submissions.

Administrators create and manage quizzes; any signed-in user can take
active quizzes, with every submission graded and recorded atomically.
"""
from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user

from quizhub.config import config
from quizhub.quiz.errors import AttemptLimitExceeded, Forbidden, QuizServiceError
from quizhub.security.security_logger import SecurityLogger

quiz_bp = Blueprint('quiz', __name__, url_prefix=config.QUIZ_API_PREFIX)


@quiz_bp.errorhandler(QuizServiceError)
def handle_quiz_error(e: QuizServiceError):
    """Render quiz errors as JSON with the status their type carries."""
    user_id = current_user.id if current_user.is_authenticated else None
    if isinstance(e, Forbidden):
        SecurityLogger.log_unauthorized_access(request.path, user_id)
    elif isinstance(e, AttemptLimitExceeded):
        SecurityLogger.log_attempt_limit(user_id, (request.view_args or {}).get('quiz_id'))
    elif e.status_code >= 500:
        current_app.logger.error(f"{e.code} on {request.method} {request.path}: {e.message}")
    return jsonify(e.to_dict()), e.status_code


from quizhub.quiz import student_routes  # noqa: E402,F401
from quizhub.quiz import admin_routes  # noqa: E402,F401
