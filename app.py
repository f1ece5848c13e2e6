"""
Flask application factory for the auth service
"""
import logging
from flask import Flask, jsonify, request
from flask_login import LoginManager
from config import Config
from models import db
from models.user import User
from utils.mail import mail

# Initialize login manager (no DB access at import time)
login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login (runs in request context)."""
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"msg": "Authentication required"}), 401


def create_app(config_class=Config):
    """Application factory pattern. DB init runs inside app_context; non-fatal on failure."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)

    @app.errorhandler(404)
    def handle_404_error(e):
        if request.path.startswith("/auth/"):
            return jsonify({"msg": "Not found"}), 404
        return e

    @app.errorhandler(405)
    def handle_405_error(e):
        if request.path.startswith("/auth/"):
            return jsonify({"msg": "Method not allowed"}), 405
        return e

    @app.errorhandler(500)
    def handle_500_error(e):
        db.session.rollback()
        original = getattr(e, "original_exception", None)
        app.logger.error(f"Unhandled error on {request.method} {request.path}: {original or e}", exc_info=original)
        if request.path.startswith("/auth/"):
            return jsonify({"msg": "Internal server error. Please try again later."}), 500
        return e

    # Create tables inside app context; do not crash if DB temporarily unavailable
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            logging.getLogger(__name__).warning("Database init skipped (non-fatal): %s", e)

    from routes import auth_bp
    app.register_blueprint(auth_bp)

    return app
