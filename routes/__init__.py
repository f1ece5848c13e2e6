"""
Routes package for the auth service
"""
from routes.auth import auth_bp

__all__ = [
    'auth_bp',
]
