from flask import request, session, jsonify

from . import auth_bp
from .session import get_auth_session
from .utils import (
    friendly_auth_error,
    login_required,
    validate_email,
    validate_password,
)
from ...core.logging_service import LoggingService


def _payload():
    """Accept both JSON bodies and classic form posts."""
    return request.get_json(silent=True) or request.form.to_dict()


def _start_session(data, email):
    user = data['user']
    session.clear()
    session['user_id'] = user['id']
    session['email'] = user.get('email') or email
    session['role'] = data.get('role') or 'user'
    session['access_token'] = data.get('access_token')
    session['refresh_token'] = data.get('refresh_token')

    if data.get('role') == 'admin':
        session['admin_id'] = user['id']
        session['admin_email'] = session['email']


@auth_bp.route('/login', methods=['POST'])
def login():
    """Email/password sign-in"""
    data = _payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    remember = data.get('remember') in (True, 'on', 'true', '1')

    if not email or not password:
        return jsonify({
            'success': False,
            'message': 'Please enter both email and password'
        }), 400

    result = get_auth_session().sign_in(email, password)

    if result['error']:
        LoggingService.log_security_event('Failed sign-in', {'email': email})
        return jsonify({
            'success': False,
            'message': friendly_auth_error(result['error'])
        }), 401

    _start_session(result['data'], email)
    if remember:
        session.permanent = True

    LoggingService.log_user_action('auth', 'login', user_id=session['user_id'])
    return jsonify({
        'success': True,
        'message': 'Sign-in successful',
        'role': session['role'],
    })


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Create an account plus its users profile row"""
    data = _payload()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    full_name = (data.get('full_name') or '').strip()

    if not validate_email(email):
        return jsonify({'success': False, 'message': 'Please enter a valid email address'}), 400

    password_error = validate_password(password, data.get('confirm_password'))
    if password_error:
        return jsonify({'success': False, 'message': password_error}), 400

    profile = {'full_name': full_name} if full_name else {}
    result = get_auth_session().sign_up(email, password, profile)

    if result['error']:
        LoggingService.warning('auth', 'Sign up failed', {'email': email, 'error': result['error']})
        return jsonify({'success': False, 'message': result['error']}), 400

    LoggingService.log_user_action('auth', 'signup', details={'email': email})
    return jsonify({
        'success': True,
        'message': 'Account created! Please check your email to confirm your account.'
    })


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Sign out and clear the session"""
    user_id = session.get('user_id')
    result = get_auth_session().sign_out(session.get('access_token'), session.get('refresh_token'))
    session.clear()

    if result['error']:
        LoggingService.warning('auth', 'Sign out reported an error', {'error': result['error']})

    LoggingService.log_user_action('auth', 'logout', user_id=user_id)
    return jsonify({'success': True, 'message': 'You have been signed out successfully.'})


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    """Send a password reset link"""
    email = (_payload().get('email') or '').strip().lower()

    if not email:
        return jsonify({'success': False, 'message': 'Please enter your email address.'}), 400

    result = get_auth_session().reset_password(email)

    if result['error']:
        LoggingService.error('auth', 'Password reset email failed', {'error': result['error']})
        return jsonify({'success': False, 'message': result['error']}), 502

    return jsonify({
        'success': True,
        'message': f'Password reset link sent to {email}'
    })


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    """Set a new password using the recovery token from the reset link"""
    data = _payload()
    password = data.get('password') or ''
    confirm_password = data.get('confirm_password') or ''

    error = validate_password(password, confirm_password)
    if error:
        return jsonify({'success': False, 'message': error}), 400

    access_token = data.get('access_token') or session.get('access_token')
    refresh_token = data.get('refresh_token') or session.get('refresh_token')

    if not access_token:
        return jsonify({'success': False, 'message': 'Invalid or expired reset link.'}), 400

    result = get_auth_session().update_password(password, access_token, refresh_token)

    if result['error']:
        LoggingService.error('auth', 'Password reset failed', {'error': result['error']})
        return jsonify({'success': False, 'message': result['error']}), 502

    return jsonify({'success': True, 'message': 'Password updated successfully'})


@auth_bp.route('/session', methods=['GET'])
def session_status():
    """Who is signed in (API endpoint)"""
    if 'user_id' in session:
        return jsonify({
            'logged_in': True,
            'user_id': session['user_id'],
            'email': session.get('email'),
            'role': session.get('role'),
        })
    return jsonify({'logged_in': False}), 401


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Profile of the signed-in user"""
    result = get_auth_session().get_profile(session['user_id'])
    if result['error']:
        return jsonify({'error': result['error']}), 502
    if not result['data']:
        return jsonify({'error': 'Profile not found'}), 404
    return jsonify(result['data'])
