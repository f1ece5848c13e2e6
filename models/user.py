"""
User model definition
"""
from models import db
from datetime import datetime
from flask_login import UserMixin
from utils.auth_utils import hash_password, verify_password

class User(UserMixin, db.Model):
    """User model for customer accounts"""
    __tablename__ = 'users'
    
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100))
    phone = db.Column(db.String(20))
    credit_card = db.Column(db.String(25))
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255))
    # Token and expiry are set and cleared together
    password_reset_token = db.Column(db.String(64), index=True, nullable=True)
    password_reset_expires = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    credits = db.relationship('Credit', backref='user', lazy=True, cascade='all, delete-orphan')
    reports = db.relationship('Report', backref='user', lazy=True, cascade='all, delete-orphan')

    @property
    def password(self):
        raise AttributeError('password is write-only')

    @password.setter
    def password(self, value):
        self.set_password(value)

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = hash_password(password)
    
    def check_password(self, password):
        """Check if password matches"""
        return verify_password(self.password_hash, password)

    def issue_reset_token(self, token, expires):
        """Replace any outstanding reset token with a new one."""
        self.password_reset_token = token
        self.password_reset_expires = expires

    def clear_reset_token(self):
        self.password_reset_token = None
        self.password_reset_expires = None

    @classmethod
    def find_by_reset_token(cls, token, now):
        """Return the user holding `token` if it is still unexpired at `now`."""
        if not token:
            return None
        return cls.query.filter(
            cls.password_reset_token == token,
            cls.password_reset_expires > now,
        ).first()

    def __repr__(self):
        return f'<User {self.email}>'
