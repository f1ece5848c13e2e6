"""
Report model definition
"""
from models import db
from datetime import datetime

class Report(db.Model):
    """Vehicle check report backing a credit"""
    __tablename__ = 'reports'
    
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    report_type = db.Column(db.String(50), nullable=False)
    registration = db.Column(db.String(20))
    stolen = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<Report {self.report_type} {self.registration}>'
