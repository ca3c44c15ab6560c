"""Admin routes for managing users and their roles."""
from flask import jsonify, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError

from quizhub import db
from quizhub.admin import admin_bp
from quizhub.auth.models import ROLE_ADMIN, VALID_ROLES, User
from quizhub.common.decorators import admin_required
from quizhub.security.security_logger import SecurityLogger


@admin_bp.route('/users')
@login_required
@admin_required
def list_users():
    """List all users, optionally filtered by ?role=ADMIN|STUDENT."""
    query = db.session.query(User)

    role = (request.args.get('role') or '').strip().upper()
    if role:
        if role not in VALID_ROLES:
            return jsonify({'success': False, 'error': f"Invalid role. Must be: {', '.join(VALID_ROLES)}"}), 400
        query = query.filter_by(role=role)

    users = query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify({'success': True, 'users': [u.to_dict() for u in users]}), 200


@admin_bp.route('/users/<int:user_id>', methods=['PUT', 'PATCH'])
@login_required
@admin_required
def update_user_role(user_id):
    """
    Change a user's role.

    Expected JSON: {"role": "ADMIN" | "STUDENT"}
    """
    data = request.get_json(silent=True) or {}
    role = (data.get('role') or '').strip().upper()
    if role not in VALID_ROLES:
        return jsonify({
            'success': False,
            'error': f"Invalid role. Must be: {', '.join(VALID_ROLES)}",
            'field': 'role'
        }), 400

    user = db.session.get(User, user_id)
    if not user:
        return jsonify({'success': False, 'error': 'User not found'}), 404

    if user.id == current_user.id and role != ROLE_ADMIN:
        return jsonify({'success': False, 'error': 'You cannot remove your own admin role'}), 400

    if user.role == role:
        return jsonify({'success': True, 'message': 'Role unchanged', 'user': user.to_dict()}), 200

    user.role = role
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"Failed to update role for user {user_id}")
        return jsonify({'success': False, 'error': 'Could not update user. Please try again.'}), 500

    SecurityLogger.log_role_change(current_user.id, user.id, role)
    return jsonify({'success': True, 'message': 'Role updated', 'user': user.to_dict()}), 200
