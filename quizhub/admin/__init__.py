"""Admin blueprint for user management routes."""
from flask import Blueprint
from quizhub.config import config

admin_bp = Blueprint('admin', __name__, url_prefix=config.ADMIN_API_PREFIX)

from quizhub.admin import routes  # noqa: E402,F401
