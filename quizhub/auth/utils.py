"""
Account credential helpers: bcrypt hashing and registration checks.
"""
import re
from typing import NamedTuple, Optional

from passlib.hash import bcrypt

from quizhub.config import config


EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
FULL_NAME_MAX_LENGTH = 255
BCRYPT_MAX_BYTES = 72


class FieldError(NamedTuple):
    field: str
    message: str


def _bcrypt_input(password: str) -> str:
    # bcrypt reads at most 72 bytes; cut on a character boundary
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES].decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
    """Hash with the configured bcrypt work factor."""
    return bcrypt.using(rounds=config.BCRYPT_ROUNDS).hash(_bcrypt_input(password))


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return bcrypt.verify(_bcrypt_input(password), password_hash)


def normalize_email(value) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_REGEX.match(email))


def validate_password(password: str) -> Optional[str]:
    """Return an error message for a password that is too short, else None."""
    if len(password) < config.MIN_PASSWORD_LENGTH:
        return f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters long"
    return None


def check_registration(full_name: str, email: str, password: str) -> Optional[FieldError]:
    """First problem with a registration form, or None when it is acceptable."""
    if not full_name:
        return FieldError('full_name', "Full name is required")
    if len(full_name) > FULL_NAME_MAX_LENGTH:
        return FieldError('full_name', f"Full name must be less than {FULL_NAME_MAX_LENGTH} characters")
    if not email:
        return FieldError('email', "Email is required")
    if not is_valid_email(email):
        return FieldError('email', "Please provide a valid email address")
    if not password:
        return FieldError('password', "Password is required")
    error = validate_password(password)
    if error:
        return FieldError('password', error)
    return None
