"""
Session manager: the per-request authentication context handed to views.
Backed by Flask-Login for "who is logged in" and the Flask cookie session for storage.
"""
from functools import wraps

from flask import session
from flask_login import current_user, login_user, logout_user


class AuthSession:
    """Authenticated identity for one request."""

    def __init__(self, user=None):
        self._user = user

    @classmethod
    def from_request(cls):
        if current_user and current_user.is_authenticated:
            return cls(current_user._get_current_object())
        return cls()

    @property
    def user(self):
        return self._user

    @property
    def is_authenticated(self):
        return self._user is not None

    @property
    def user_id(self):
        return self._user.id if self._user is not None else None

    def login(self, user):
        """Establish an authenticated session for `user`."""
        if not login_user(user):
            raise RuntimeError(f"Could not establish a session for user {user.id}")
        self._user = user

    def logout(self):
        """Drop the login for this request."""
        logout_user()
        self._user = None

    def destroy(self):
        """Clear everything stored in the session cookie."""
        session.clear()


def with_auth_session(f):
    """Decorator passing the request's AuthSession to the view as `auth`."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        kwargs['auth'] = AuthSession.from_request()
        return f(*args, **kwargs)
    return decorated_function


def authenticate(email, password):
    """
    Local email/password strategy.
    Returns (user, None) on success or (None, info) where info is a JSON-ready dict.
    """
    from models.user import User

    user = User.query.filter_by(email=email).first()
    if not user:
        return None, {'msg': f'Email {email} not found.'}
    if not user.check_password(password):
        return None, {'msg': 'Invalid email or password.'}
    return user, None
