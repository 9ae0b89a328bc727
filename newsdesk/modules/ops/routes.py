"""
Ops Routes
==========

Public health endpoint and admin error feed.
"""

from datetime import datetime

from flask import jsonify, request

from . import ops_health_bp, ops_admin_bp
from ..auth.utils import admin_required
from ...core.config import Config, get_config_value
from ...core.logging_service import LoggingService
from ...core.storage import ensure_required_buckets


def _check_config():
    """Which required settings are missing."""
    missing = [key for key in Config.REQUIRED_ENV_VARS if not get_config_value(key)]
    return {'ok': not missing, 'missing': missing}


def _check_storage():
    """Whether every required storage bucket exists."""
    all_present, buckets = ensure_required_buckets()
    return {'ok': all_present, 'buckets': buckets}


def _build_health_response():
    checks = {
        'config': _check_config(),
        'storage': _check_storage(),
    }
    status = 'ok' if all(check['ok'] for check in checks.values()) else 'warning'
    return {
        'status': status,
        'timestamp': datetime.now().isoformat(),
        'checks': checks,
    }


# ---------------------------------------------------------------------------
# Public routes (ops_health_bp, no auth)
# ---------------------------------------------------------------------------

@ops_health_bp.route('/')
@ops_health_bp.route('')
def health_check():
    """Public health endpoint for uptime monitors."""
    return jsonify(_build_health_response())


# ---------------------------------------------------------------------------
# Admin routes (ops_admin_bp, session auth)
# ---------------------------------------------------------------------------

@ops_admin_bp.route('/api/errors')
@admin_required
def api_errors():
    """Recent errors from app_logs for the error feed."""
    limit = request.args.get('limit', 50, type=int)
    errors = LoggingService.get_recent_logs(limit=min(limit, 200), level='ERROR')
    return jsonify({'errors': errors, 'count': len(errors)})
