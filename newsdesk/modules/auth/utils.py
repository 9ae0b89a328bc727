import re
from functools import wraps

from flask import jsonify, session

from ...core.logging_service import LoggingService

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 8


def validate_email(email):
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def validate_password(password, confirm_password=None):
    """Return an error message for a new password, or None when it is acceptable."""
    if not password or not password.strip():
        return 'Password is required'
    if len(password) < MIN_PASSWORD_LENGTH:
        return f'Password must be at least {MIN_PASSWORD_LENGTH} characters long'
    if confirm_password is not None and password != confirm_password:
        return 'Passwords do not match'
    return None


def friendly_auth_error(message):
    """Map gateway error text onto what the sign-in form shows."""
    if message and 'Invalid login credentials' in message:
        return 'Invalid email or password'
    return message or 'Failed to sign in'


def login_required(f):
    """Decorator to require a signed-in user (JSON 401 otherwise)"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require the admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'error': 'Authentication required'}), 401
        if 'admin_id' not in session:
            LoggingService.log_security_event('Admin route denied', {
                'user_id': session.get('user_id'),
                'role': session.get('role'),
            })
            return jsonify({'error': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated_function
