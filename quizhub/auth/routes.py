from flask import current_app, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizhub import db
from quizhub.config import config
from quizhub.auth import auth_bp
from quizhub.auth.models import ROLE_STUDENT, User
from quizhub.auth.utils import (
    check_registration,
    hash_password,
    is_valid_email,
    normalize_email,
    verify_password,
)
from quizhub.security.rate_limiter import rate_limit
from quizhub.security.security_logger import SecurityLogger


@auth_bp.route("/", methods=["GET"])
def auth_root():
    """Simple health/info endpoint for auth API."""
    base_path = config.AUTH_API_PREFIX
    return jsonify(
        {
            "status": "ok",
            "message": "Auth API is running",
            "endpoints": [
                f"{base_path}/register",
                f"{base_path}/login",
                f"{base_path}/logout",
                f"{base_path}/me",
            ],
        }
    )


@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Create a student account and sign it in.

    Expected JSON: {"full_name": "...", "email": "...", "password": "..."}
    """
    data = request.get_json(silent=True) or {}
    full_name = (data.get("full_name") or "").strip()
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""

    problem = check_registration(full_name, email, password)
    if problem:
        return jsonify({"success": False, "error": problem.message, "field": problem.field}), 400

    if db.session.query(User.id).filter_by(email=email).first():
        return jsonify({"success": False, "error": "An account with this email already exists"}), 409

    user = User(
        full_name=full_name,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_STUDENT,
    )
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"success": False, "error": "An account with this email already exists"}), 409
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"Failed to register {email}")
        return jsonify({"success": False, "error": "Could not create account. Please try again."}), 500

    login_user(user)
    current_app.logger.info(f"User registered: id={user.id}, email={email}")

    return jsonify({"success": True, "message": "Registration successful", "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
@rate_limit(max_requests=10, window_seconds=60, per='ip', config_prefix='LOGIN_RATE',
            error_message="Too many login attempts. Please try again later.")
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    remember = bool(data.get("remember", False))

    if not email or not password:
        return jsonify({"success": False, "error": "Email and password are required"}), 400

    if not is_valid_email(email):
        return jsonify({"success": False, "error": "Please provide a valid email address", "field": "email"}), 400

    user = db.session.query(User).filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        SecurityLogger.log_failed_login(email)
        return jsonify({"success": False, "error": "Invalid email or password"}), 401

    login_user(user, remember=remember)
    SecurityLogger.log_successful_login(user.id, user.email)

    return jsonify({"success": True, "message": "Login successful", "user": user.to_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout_route():
    """Logout route."""
    logout_user()
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"success": True, "user": current_user.to_dict()}), 200
