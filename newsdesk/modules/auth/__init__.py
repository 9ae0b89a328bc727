"""
Newsdesk Auth Module

Provides user authentication backed by the Supabase auth gateway:
- Email/password sign-in and sign-up
- Forgot / reset password
- Session status
- An AuthSession following gateway events, with change subscribers
- Each sign-in, sign-out and password change on a client of its own
"""

from flask import Blueprint

auth_bp = Blueprint(
    'auth',
    __name__,
    url_prefix='/auth'
)

from . import routes
from .session import AuthSession, get_auth_session
from .utils import login_required, admin_required

__all__ = ['auth_bp', 'AuthSession', 'get_auth_session', 'login_required', 'admin_required']
