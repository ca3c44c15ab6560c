from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from dotenv import load_dotenv
from flask_migrate import Migrate
from flask_compress import Compress

# Load environment variables early so config is available for blueprint creation
load_dotenv()

from quizhub.config import config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()


def create_app(overrides: dict | None = None) -> Flask:
    """
    Application factory for the Flask app.
    Loads environment variables, configures the database,
    and registers blueprints.

    Args:
        overrides: Optional Flask config values applied last (used by tests)
    """
    # Re-read the environment so values loaded after import are picked up
    config.reload()

    # Validate configuration
    config.validate()

    app = Flask(__name__)

    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = config.SQLALCHEMY_DATABASE_URI
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config["SQLALCHEMY_ECHO"] = config.SQLALCHEMY_ECHO
    app.config["SESSION_COOKIE_SECURE"] = config.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_HTTPONLY"] = config.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = config.SESSION_COOKIE_SAMESITE

    # Rate limits, read per request so tests can override them
    app.config["RATE_LIMIT_ENABLED"] = True
    app.config["LOGIN_RATE_LIMIT"] = config.LOGIN_RATE_LIMIT
    app.config["LOGIN_RATE_WINDOW"] = config.LOGIN_RATE_WINDOW
    app.config["SUBMIT_RATE_LIMIT"] = config.SUBMIT_RATE_LIMIT
    app.config["SUBMIT_RATE_WINDOW"] = config.SUBMIT_RATE_WINDOW

    # Response compression settings
    app.config["COMPRESS_MIMETYPES"] = ['application/json']
    app.config["COMPRESS_LEVEL"] = 6
    app.config["COMPRESS_MIN_SIZE"] = 500

    if overrides:
        app.config.update(overrides)

    # Connection pooling only applies to server databases; SQLite uses its own pool
    if not app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite"):
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
        })

    app.logger.setLevel(config.LOG_LEVEL)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    compress.init_app(app)

    from quizhub.security import init_security
    init_security(app)

    @login_manager.user_loader
    def load_user(user_id):
        from quizhub.auth.models import User
        try:
            return db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        """API clients get JSON instead of a login redirect."""
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    # Register blueprints
    from quizhub.auth import auth_bp
    app.register_blueprint(auth_bp)

    from quizhub.quiz import quiz_bp
    app.register_blueprint(quiz_bp)

    from quizhub.admin import admin_bp
    app.register_blueprint(admin_bp)

    @app.errorhandler(404)
    def handle_404(e):
        """Return JSON for unknown routes."""
        app.logger.warning(f"404 error: {request.method} {request.path}")
        return jsonify({
            'success': False,
            'error': f'Route not found: {request.method} {request.path}',
            'path': request.path,
            'method': request.method
        }), 404

    @app.errorhandler(405)
    def handle_405(e):
        """Return JSON for Method Not Allowed."""
        app.logger.warning(f"405 error: {request.method} {request.path}")
        return jsonify({
            'success': False,
            'error': f'Method not allowed: {request.method} {request.path}',
            'path': request.path,
            'method': request.method
        }), 405

    from quizhub.cli import register_commands
    register_commands(app)

    # Create tables if they do not exist
    with app.app_context():
        from quizhub.auth.models import User  # noqa: F401
        from quizhub.quiz.models import Quiz, Question, QuizAttempt, Answer  # noqa: F401
        db.create_all()

    return app
