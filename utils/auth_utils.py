"""
Authentication utility functions: password hashing and reset tokens
"""
import secrets
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask import current_app

# 16 random bytes, hex encoded
RESET_TOKEN_BYTES = 16


def utcnow():
    """Current time as a naive UTC datetime (matches stored columns)."""
    return datetime.utcnow()


def hash_password(password):
    """Generate password hash"""
    return generate_password_hash(password)


def verify_password(password_hash, password):
    """Verify password against hash"""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def generate_reset_token():
    """Opaque 32-character hex token for password reset links."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def reset_token_expires_at(now=None):
    """Expiry for a reset token issued at `now` (default: PASSWORD_RESET_TOKEN_LIFETIME from now)."""
    now = now or utcnow()
    return now + current_app.config['PASSWORD_RESET_TOKEN_LIFETIME']


def find_user_by_reset_token(token):
    """
    Return the user whose stored reset token equals `token` and whose expiry is
    strictly in the future, else None. Missing and expired tokens are not
    distinguished.
    """
    from models.user import User

    if not token or not isinstance(token, str):
        return None
    return User.find_by_reset_token(token, utcnow())
