"""
Authentication routes: signup, login, logout, password update/reset, account removal.
All responses are JSON {"msg": ...}.
"""
from flask import Blueprint, request, jsonify, current_app, url_for
from flask_login import login_required
from models import db
from models.user import User
from utils.auth_utils import generate_reset_token, reset_token_expires_at, find_user_by_reset_token, utcnow
from utils.mail import send_password_reset_email, send_password_changed_email
from utils.reports import build_credits
from utils.session import with_auth_session, authenticate
from utils.validators import (
    validate_email, normalize_email, is_mobile_phone, is_credit_card, validate_password,
    compact_phone, compact_card_number, MAX_NAME_LENGTH, MAX_CREDIT_TYPE_LENGTH,
)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

SIGNED_IN_MSG = 'Signed in'
SIGNED_OUT_MSG = 'Signed out'
INVALID_TOKEN_MSG = 'Invalid or expired token'
EMAIL_INVALID_MSG = 'Email is not valid'


def _request_data():
    """JSON body or form fields."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form


def _field(data, name, strip=True):
    value = data.get(name)
    if value is None:
        return ''
    return str(value).strip() if strip else str(value)


def _message(msg, status=200):
    return jsonify({'msg': msg}), status


def _session_state(auth):
    return _message(SIGNED_IN_MSG if auth.is_authenticated else SIGNED_OUT_MSG)


def _credit_request_error(entry):
    """First problem with one signup credit request, or None."""
    if not isinstance(entry, dict):
        return 'Credit type is not valid'
    credit_type = entry.get('creditType')
    if not isinstance(credit_type, str) or not credit_type.strip() or len(credit_type) > MAX_CREDIT_TYPE_LENGTH:
        return 'Credit type is not valid'
    if not isinstance(entry.get('generateReport', False), bool):
        return 'Generate report must be true or false'
    return None


def _normalized_email_or_error(raw_email, errors):
    email = normalize_email(raw_email) if validate_email(raw_email) else None
    if email is None:
        errors.append(EMAIL_INVALID_MSG)
    return email


@auth_bp.route('/signup', methods=['GET'])
@with_auth_session
def get_signup(auth):
    """Session-state probe"""
    return _session_state(auth)


@auth_bp.route('/signup', methods=['POST'])
@with_auth_session
def signup(auth):
    """Create a new account, with any requested credits and reports"""
    data = _request_data()
    name = _field(data, 'name')
    phone = _field(data, 'phone')
    credit_card = _field(data, 'creditCard')
    password = _field(data, 'password', strip=False)
    credit_requests = data.get('credits')

    errors = []
    if not is_mobile_phone(phone):
        errors.append('Phone is not valid')
    if not is_credit_card(credit_card):
        errors.append('Credit Card Number is not valid')
    email = _normalized_email_or_error(_field(data, 'email'), errors)
    if not password:
        errors.append('Password cannot be blank')
    if len(name) > MAX_NAME_LENGTH:
        errors.append('Name is too long')
    if isinstance(credit_requests, list):
        for entry in credit_requests:
            credit_error = _credit_request_error(entry)
            if credit_error:
                errors.append(credit_error)
                break

    if errors:
        return _message(errors[0], 400)

    credits, reports = build_credits(credit_requests, utcnow() + current_app.config['CREDIT_LIFETIME'])

    if User.query.filter_by(email=email).first():
        return _message('Email already registered', 400)

    user = User(
        name=name,
        phone=compact_phone(phone),
        credit_card=compact_card_number(credit_card),
        email=email,
        credits=credits,
        reports=reports,
    )
    user.password = password
    db.session.add(user)
    db.session.commit()

    auth.login(user)
    current_app.logger.info(f"New account {user.id} with {len(credits)} credit(s), {len(reports)} report(s)")
    return _message('Signup successful')


@auth_bp.route('/login', methods=['GET'])
@with_auth_session
def get_login(auth):
    """Session-state probe"""
    return _session_state(auth)


@auth_bp.route('/login', methods=['POST'])
@with_auth_session
def login(auth):
    """Sign in using email and password"""
    data = _request_data()
    password = _field(data, 'password', strip=False)

    errors = []
    email = _normalized_email_or_error(_field(data, 'email'), errors)
    if not password:
        errors.append('Password cannot be blank')
    if errors:
        return _message(errors[0], 400)

    user, info = authenticate(email, password)
    if not user:
        return jsonify(info), 401

    auth.login(user)
    return _message(SIGNED_IN_MSG)


@auth_bp.route('/logout', methods=['GET'])
@with_auth_session
def logout(auth):
    """Log out and destroy the session"""
    auth.logout()
    try:
        auth.destroy()
    except Exception as e:
        current_app.logger.error(f"Failed to destroy session during logout: {str(e)}", exc_info=True)
        return _message('Signed out with errors', 500)
    return _message(SIGNED_OUT_MSG)


@auth_bp.route('/password/update', methods=['GET'])
@login_required
def get_update_password():
    """Update password page probe (authenticated only)"""
    return _message(SIGNED_IN_MSG)


@auth_bp.route('/password/update', methods=['POST'])
@login_required
@with_auth_session
def update_password(auth):
    """Change the signed-in user's password"""
    data = _request_data()
    password = _field(data, 'password', strip=False)
    confirm_password = _field(data, 'confirmPassword', strip=False)

    errors = []
    is_valid, pwd_error = validate_password(password)
    if not is_valid:
        errors.append(pwd_error)
    if password != confirm_password:
        errors.append('Passwords do not match')
    if errors:
        return _message(errors[0], 400)

    user = db.session.get(User, auth.user_id)
    if user is None:
        return _message('Account not found', 401)
    user.password = password
    db.session.commit()
    current_app.logger.info(f"Password updated for user {user.id}")
    return _message('Password updated')


@auth_bp.route('/password/reset', methods=['GET'])
@with_auth_session
def get_reset(auth):
    """Session-state probe for the reset request page"""
    return _session_state(auth)


@auth_bp.route('/password/reset', methods=['POST'])
def request_reset():
    """Issue a reset token and email the reset link"""
    data = _request_data()

    errors = []
    email = _normalized_email_or_error(_field(data, 'email'), errors)
    if errors:
        return _message(errors[0], 400)

    token = generate_reset_token()
    user = User.query.filter_by(email=email).first()
    if not user:
        return _message(f'Email {email} not found', 401)

    user.issue_reset_token(token, reset_token_expires_at())
    db.session.commit()

    reset_url = url_for('auth.reset_token', token=token, _external=True)
    try:
        send_password_reset_email(user, reset_url)
    except Exception:
        # Token stays stored; the user can simply ask again
        return _message('Error sending the password reset email', 500)
    return _message('Email sent')


@auth_bp.route('/password/reset/<token>', methods=['GET'])
def reset_token(token):
    """Check a reset token without using it"""
    if not find_user_by_reset_token(token):
        return _message(INVALID_TOKEN_MSG, 400)
    return _message('Valid token')


@auth_bp.route('/password/reset/<token>', methods=['POST'])
@with_auth_session
def complete_reset(token, auth):
    """Set a new password with a reset token and sign the user in"""
    data = _request_data()
    password = _field(data, 'password', strip=False)
    confirm_password = _field(data, 'confirmPassword', strip=False)

    errors = []
    is_valid, pwd_error = validate_password(password, message='Password must be at least 8 characters long.')
    if not is_valid:
        errors.append(pwd_error)
    if password != confirm_password:
        errors.append('Passwords must match.')
    if errors:
        return _message(errors[0], 400)

    # Token may have expired since it was last checked
    user = find_user_by_reset_token(token)
    if not user:
        return _message(INVALID_TOKEN_MSG, 400)

    user.password = password
    user.clear_reset_token()
    db.session.commit()

    auth.login(user)
    current_app.logger.info(f"Password reset completed for user {user.id}")
    send_password_changed_email(user)
    return _message('Password updated')


@auth_bp.route('/delete', methods=['DELETE'])
@login_required
@with_auth_session
def delete_account(auth):
    """Delete the signed-in user's account"""
    user_id = auth.user_id
    user = db.session.get(User, user_id)
    if user is not None:
        db.session.delete(user)
        db.session.commit()
    auth.logout()
    current_app.logger.info(f"Account {user_id} removed")
    return _message('Account removed')
