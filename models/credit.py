"""
Credit model definition
"""
from models import db
from datetime import datetime

class Credit(db.Model):
    """Entitlement granted to a user at signup"""
    __tablename__ = 'credits'
    
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    credit_type = db.Column(db.String(50), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    has_report = db.Column(db.Boolean, default=False, nullable=False)
    report_id = db.Column(db.Integer, db.ForeignKey('reports.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    report = db.relationship('Report', lazy=True)

    def __repr__(self):
        return f'<Credit {self.credit_type}>'
