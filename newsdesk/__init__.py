"""
Newsdesk - A Flask Admin for a News Platform
============================================

Admin back end for a news publishing platform, backed by Supabase:
- Email/password authentication, each sign-in on a client of its own
- Article management (filters, soft delete, bulk status changes, uploads)
- Dashboard and analytics with a downloadable text report
- Trending headlines importer (newsapi.org)

Usage:
    from flask import Flask
    from newsdesk import Newsdesk

    app = Flask(__name__)
    newsdesk = Newsdesk(app)
"""

from flask_cors import CORS

from .core.config import Config, is_production, validate_env_vars
from .core.logging_service import LoggingService
from .core.supabase_client import create_supabase_client
from .modules.auth.session import AuthSession, SIGNED_IN, SIGNED_OUT

__version__ = '0.1.0'

DEFAULT_FEATURES = {
    'auth': True,
    'dashboard': True,
    'news': True,
    'analytics': True,
    'trending': True,
    'profile': True,
    'ops': True,
}


class Newsdesk:
    """
    Flask extension that wires configuration, the Supabase client,
    the auth session and every admin blueprint onto an app.

    Options (second argument):
        supabase_client: use this client instead of creating one from config
        client_factory: zero-argument callable returning a fresh client for
            sign-ins and per-user requests (defaults to one built from config)
        features: {module_name: bool} to switch modules off
        listen_for_auth_changes: initialise the auth session at startup (default True)
    """

    def __init__(self, app=None, options=None):
        self.options = dict(options or {})
        self.client = self.options.get('supabase_client')
        self.client_factory = self.options.get('client_factory') or create_supabase_client
        self.auth_session = AuthSession(self.get_client, self.new_client)
        self.registered_modules = []
        self._stop_auth_logging = None
        if app is not None:
            self.init_app(app)

    def get_client(self):
        if self.client is None:
            self.client = create_supabase_client()
        return self.client

    def new_client(self):
        """A fresh client that shares no auth state with any other."""
        return self.client_factory()

    def init_app(self, app):
        self._apply_config_defaults(app)
        app.extensions['newsdesk'] = self

        with app.app_context():
            if not is_production():
                try:
                    validate_env_vars()
                except RuntimeError as e:
                    LoggingService.warning('config', str(e))

            origins = app.config.get('CORS_ORIGINS')
            if origins:
                CORS(app, origins=origins, supports_credentials=True)

            self._register_modules(app)

            if self.options.get('listen_for_auth_changes', True) and self._has_backend(app):
                self.auth_session.initialize()
                self._stop_auth_logging = self.auth_session.on_change(self._log_auth_change)

    def _apply_config_defaults(self, app):
        for key in dir(Config):
            if key.isupper():
                app.config.setdefault(key, getattr(Config, key))
        if not app.config.get('SECRET_KEY'):
            app.config['SECRET_KEY'] = Config.SECRET_KEY or 'dev-secret-key-change-in-production'

    def _has_backend(self, app):
        return self.client is not None or bool(
            app.config.get('SUPABASE_URL') and app.config.get('SUPABASE_KEY')
        )

    def _register_modules(self, app):
        features = dict(DEFAULT_FEATURES)
        features.update(self.options.get('features') or {})

        if features['auth']:
            from .modules.auth import auth_bp
            app.register_blueprint(auth_bp)
            self.registered_modules.append('auth')

        if features['dashboard']:
            from .modules.dashboard import dashboard_bp
            app.register_blueprint(dashboard_bp)
            self.registered_modules.append('dashboard')

        if features['news']:
            from .modules.news import news_bp
            app.register_blueprint(news_bp)
            self.registered_modules.append('news')

        if features['analytics']:
            from .modules.analytics import analytics_bp
            app.register_blueprint(analytics_bp)
            self.registered_modules.append('analytics')

        if features['trending']:
            from .modules.trending import trending_bp
            app.register_blueprint(trending_bp)
            self.registered_modules.append('trending')

        if features['profile']:
            from .modules.profile import profile_bp
            app.register_blueprint(profile_bp)
            self.registered_modules.append('profile')

        if features['ops']:
            from .modules.ops import ops_health_bp, ops_admin_bp
            app.register_blueprint(ops_health_bp)
            app.register_blueprint(ops_admin_bp)
            self.registered_modules.append('ops')

        LoggingService.info('system', 'Newsdesk modules registered',
                            {'modules': self.registered_modules})

    @staticmethod
    def _log_auth_change(event, user, role):
        user_id = (user or {}).get('id')
        if event == SIGNED_IN:
            LoggingService.info('auth', 'User signed in', {'role': role}, user_id=user_id)
        elif event == SIGNED_OUT:
            LoggingService.info('auth', 'User signed out')

    def get_registered_modules(self):
        return list(self.registered_modules)

    def shutdown(self):
        """Stop listening for auth changes and drop every subscriber."""
        if self._stop_auth_logging is not None:
            self._stop_auth_logging()
            self._stop_auth_logging = None
        self.auth_session.teardown()


def create_app(config_object=None, options=None):
    """Application factory used by newsdesk.app and the tests."""
    from flask import Flask

    app = Flask(__name__)
    if config_object is not None:
        app.config.from_object(config_object)
    Newsdesk(app, options)
    return app


__all__ = ['Newsdesk', 'create_app', '__version__']
