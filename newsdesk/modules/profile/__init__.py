"""
Profile Settings Module
=======================

Signed-in user's own settings:
- Profile details (name, title, bio, avatar)
- Password change
- Notification preferences, plus a bulk update for admins
"""

from flask import Blueprint

profile_bp = Blueprint(
    'profile',
    __name__,
    url_prefix='/admin/profile'
)

from . import routes

__all__ = ['profile_bp']
