from functools import wraps

from flask import jsonify
from flask_login import current_user

from quizhub.security.security_logger import SecurityLogger


def admin_required(f):
    """Decorator to require the ADMIN role for an API route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        if not current_user.is_admin():
            SecurityLogger.log_unauthorized_access(f.__name__, current_user.id)
            return jsonify({'success': False, 'error': 'Unauthorized', 'code': 'forbidden'}), 403
        return f(*args, **kwargs)
    return decorated_function
