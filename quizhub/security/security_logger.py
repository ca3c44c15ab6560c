"""
Audit log for security events.

Every line starts with ``SECURITY:`` and an event name, followed by
``key=value`` pairs and the client address, so the events can be grepped
out of the application log.
"""
import logging
from datetime import datetime, timezone

from flask import current_app, has_request_context, request


def _client_ip():
    return request.remote_addr if has_request_context() else None


class SecurityLogger:
    """Writes security events to the application logger."""

    @staticmethod
    def _log(level: int, event: str, **fields) -> None:
        fields['ip'] = _client_ip()
        fields['at'] = datetime.now(timezone.utc).isoformat()
        details = ' '.join(f"{key}={value}" for key, value in fields.items())
        current_app.logger.log(level, f"SECURITY: {event} {details}")

    @staticmethod
    def log_failed_login(email: str, reason: str = "invalid_credentials"):
        SecurityLogger._log(logging.WARNING, 'login_failed', email=email, reason=reason)

    @staticmethod
    def log_successful_login(user_id: int, email: str):
        SecurityLogger._log(logging.INFO, 'login', user_id=user_id, email=email)

    @staticmethod
    def log_rate_limit_exceeded(identifier: str, endpoint: str):
        SecurityLogger._log(logging.WARNING, 'rate_limited', identifier=identifier, endpoint=endpoint)

    @staticmethod
    def log_unauthorized_access(resource: str, user_id: int = None):
        """
        Record a request refused for lack of rights.

        Args:
            resource: Path or view name that was requested
            user_id: Caller's id, None when anonymous
        """
        SecurityLogger._log(logging.WARNING, 'forbidden', resource=resource, user_id=user_id or 'anonymous')

    @staticmethod
    def log_attempt_limit(user_id: int, quiz_id: int):
        SecurityLogger._log(logging.INFO, 'attempt_limit', user_id=user_id, quiz_id=quiz_id)

    @staticmethod
    def log_role_change(admin_id: int, user_id: int, role: str):
        SecurityLogger._log(logging.INFO, 'role_changed', admin_id=admin_id, user_id=user_id, role=role)
