"""
Models package for the auth service
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models here to ensure they're registered
from models.user import User
from models.credit import Credit
from models.report import Report

__all__ = [
    'db',
    'User',
    'Credit',
    'Report',
]
