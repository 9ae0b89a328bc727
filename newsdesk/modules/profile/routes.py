from flask import request, session, jsonify

from . import profile_bp
from ..auth.session import get_auth_session
from ..auth.utils import admin_required, login_required, validate_password
from ...core.config import get_config_value
from ...core.logging_service import LoggingService
from ...core.models import UserProfile
from ...core.storage import upload_file, validate_file
from ...core.supabase_client import get_supabase, run_query

PROFILE_FIELDS = ('full_name', 'title', 'bio')
NOTIFICATION_FLAGS = ('email_notifications', 'news_alerts', 'activity_summary')


def _flags_from(data):
    return {flag: bool(data[flag]) for flag in NOTIFICATION_FLAGS if flag in data}


@profile_bp.route('/api/profile', methods=['GET'])
@login_required
def get_profile():
    """Profile and notification settings for the signed-in user"""
    result = get_auth_session().get_profile(session['user_id'])
    if result['error']:
        return jsonify({'error': 'Failed to load profile data'}), 502
    if not result['data']:
        return jsonify({'error': 'Profile not found'}), 404
    profile = UserProfile.from_row(result['data'])
    return jsonify(dict(profile.to_dict(), is_admin=profile.is_admin))


@profile_bp.route('/api/profile', methods=['PUT'])
@login_required
def update_profile():
    """Update name, title and bio"""
    data = request.get_json(silent=True) or {}
    fields = {key: data[key] for key in PROFILE_FIELDS if key in data}
    if not fields:
        return jsonify({'error': 'No profile fields provided'}), 400
    invalid = [key for key, value in fields.items()
               if value is not None and not isinstance(value, str)]
    if invalid:
        return jsonify({'error': f"{', '.join(invalid)} must be text"}), 400
    fields = {key: (value or '').strip() for key, value in fields.items()}

    result = get_auth_session().update_profile(fields, user_id=session['user_id'])
    if result['error']:
        return jsonify({'error': result['error'] or 'Failed to update profile'}), 502

    LoggingService.log_user_action('profile', 'update profile', user_id=session['user_id'])
    return jsonify({'success': True, 'message': 'Profile updated successfully'})


@profile_bp.route('/api/password', methods=['PUT'])
@login_required
def update_password():
    """Change the signed-in user's password"""
    data = request.get_json(silent=True) or {}
    new_password = data.get('new_password') or ''

    error = validate_password(new_password, data.get('confirm_password') or '')
    if error:
        return jsonify({'error': error}), 400

    result = get_auth_session().update_password(
        new_password,
        access_token=session.get('access_token'),
        refresh_token=session.get('refresh_token'),
    )
    if result['error']:
        return jsonify({'error': result['error']}), 502

    LoggingService.log_user_action('profile', 'change password', user_id=session['user_id'])
    return jsonify({'success': True, 'message': 'Password updated successfully'})


@profile_bp.route('/api/notifications', methods=['PUT'])
@login_required
def update_notifications():
    """Save the signed-in user's notification preferences"""
    flags = _flags_from(request.get_json(silent=True) or {})
    if not flags:
        return jsonify({'error': 'No notification settings provided'}), 400

    result = get_auth_session().update_profile(flags, user_id=session['user_id'])
    if result['error']:
        return jsonify({'error': result['error']}), 502
    return jsonify({'success': True, 'message': 'Notification settings updated'})


@profile_bp.route('/api/notifications/bulk', methods=['POST'])
@admin_required
def bulk_update_notifications():
    """Apply the same notification flags to many users in one upsert"""
    data = request.get_json(silent=True) or {}
    user_ids = data.get('user_ids') or []
    if not isinstance(user_ids, list):
        return jsonify({'error': 'user_ids must be a list'}), 400
    user_ids = [uid for uid in user_ids if uid]
    flags = _flags_from(data.get('settings') or {})

    if not user_ids:
        return jsonify({'error': 'No users selected'}), 400
    if not flags:
        return jsonify({'error': 'No notification settings provided'}), 400

    rows = [dict(flags, id=user_id) for user_id in user_ids]
    result = run_query(
        get_supabase().table(get_config_value('USERS_TABLE', 'users')).upsert(rows),
        source='profile',
        description=f'bulk notification update for {len(rows)} users',
    )
    if result['error']:
        return jsonify({'error': result['error']}), 502

    LoggingService.log_user_action('profile', 'bulk notification update',
                                   user_id=session['user_id'], details={'user_ids': user_ids})
    return jsonify({'success': True, 'updated': len(rows)})


@profile_bp.route('/api/avatar', methods=['POST'])
@login_required
def upload_avatar():
    """Upload an avatar image and save its URL on the profile"""
    file = request.files.get('avatar')
    if file is None or file.filename == '':
        return jsonify({'error': 'No file provided'}), 400

    data = file.read()
    info = {'content_type': file.mimetype or '', 'size': len(data), 'filename': file.filename}

    validation = validate_file(info, {
        'max_size': get_config_value('MAX_IMAGE_SIZE'),
        'allowed_types': get_config_value('ALLOWED_IMAGE_TYPES'),
    })
    if not validation['valid']:
        return jsonify({'error': validation['error']}), 400

    upload = upload_file(data, info, folder='avatars')
    if not upload['success']:
        return jsonify({'error': upload['error']}), 502

    result = get_auth_session().update_profile({'avatar_url': upload['url']},
                                               user_id=session['user_id'])
    if result['error']:
        return jsonify({'error': result['error']}), 502

    return jsonify({'success': True, 'avatar_url': upload['url']})
