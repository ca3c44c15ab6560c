"""
Security headers module.

Adds security headers to every API response.
"""

from flask import current_app


class SecurityHeaders:
    """
    Security headers middleware.

    The API only ever returns JSON, so the content policy denies everything.
    """

    @staticmethod
    def init_app(app):
        """
        Initialize security headers for the Flask app.

        Args:
            app: Flask application instance
        """
        @app.after_request
        def add_security_headers(response):
            response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers['Referrer-Policy'] = 'no-referrer'
            response.headers['Permissions-Policy'] = (
                "geolocation=(), "
                "microphone=(), "
                "camera=(), "
                "payment=(), "
                "usb=()"
            )

            # Graded results are per-user; never let a proxy cache them
            response.headers.setdefault('Cache-Control', 'no-store')

            # Strict-Transport-Security: only when cookies are HTTPS-only
            if current_app.config.get('SESSION_COOKIE_SECURE', False):
                response.headers['Strict-Transport-Security'] = (
                    'max-age=31536000; includeSubDomains'
                )

            if 'Server' in response.headers:
                del response.headers['Server']

            return response
