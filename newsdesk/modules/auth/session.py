"""
Auth Session
============

Wrapper around the Supabase auth gateway.

Lifecycle (app-wide client, gateway events only):
    session = AuthSession(lambda: client, new_client)
    session.initialize()               # read current session, start listening
    unsubscribe = session.on_change(cb)  # cb(event, user, role)
    ...
    unsubscribe()
    session.teardown()                 # stop listening, drop subscribers

Operations (sign_in, sign_up, sign_out, reset_password, update_password)
each run on a fresh client from ``new_client`` and hand their result back,
so one user's sign-in never changes the identity another request runs as.
Every operation returns {'data', 'error'} and never raises.
"""

from datetime import datetime, timezone

from flask import current_app

from ...core.config import get_config_value
from ...core.debounce import Debouncer
from ...core.logging_service import LoggingService
from ...core.supabase_client import create_supabase_client, error_message, get_supabase, run_query

SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'


def _field(obj, name):
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def user_to_dict(user):
    """Flatten a gateway user object into the fields the admin needs."""
    if user is None:
        return None
    return {
        'id': _field(user, 'id'),
        'email': _field(user, 'email'),
        'user_metadata': _field(user, 'user_metadata') or {},
    }


def get_auth_session():
    """The AuthSession bound to the current app."""
    return current_app.extensions['newsdesk'].auth_session


class AuthSession:
    """Gateway event state with subscriber callbacks, plus auth operations.

    Args:
        client_provider: returns the app-wide client whose events are followed.
        client_factory: returns a fresh client for each operation.
        event_delay: seconds to let a burst of gateway events settle; read
            from AUTH_EVENT_DEBOUNCE_MS when None, 0 handles each at once.
    """

    def __init__(self, client_provider, client_factory=None, event_delay=None):
        self._client_provider = client_provider
        self._client_factory = client_factory or create_supabase_client
        self._event_delay = event_delay
        self._events = None
        self._subscribers = []
        self._gateway_subscription = None
        self.user = None
        self.role = None
        self.initialized = False

    @property
    def client(self):
        return self._client_provider()

    # ----- lifecycle -----

    def initialize(self):
        """Load the current session and listen for sign-in/sign-out."""
        if self.initialized:
            return self

        if self._event_delay is None:
            self._events = Debouncer.from_config(self._apply_event, 'AUTH_EVENT_DEBOUNCE_MS')
        else:
            self._events = Debouncer(self._apply_event, self._event_delay)

        try:
            session = self.client.auth.get_session()
            self._set_user(_field(session, 'user'))
        except Exception as e:
            LoggingService.error('auth', f"Error checking auth state: {error_message(e)}")

        try:
            subscription = self.client.auth.on_auth_state_change(self._handle_auth_event)
            # Some client versions wrap the subscription in a response object
            self._gateway_subscription = _field(subscription, 'subscription') or subscription
        except Exception as e:
            LoggingService.error('auth', f"Could not subscribe to auth changes: {error_message(e)}")

        self.initialized = True
        return self

    def on_change(self, subscriber):
        """Register subscriber(event, user, role); returns an unsubscribe callable."""
        self._subscribers.append(subscriber)

        def unsubscribe():
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def teardown(self):
        """Stop listening to the gateway and forget all subscribers."""
        if self._gateway_subscription is not None:
            try:
                self._gateway_subscription.unsubscribe()
            except Exception as e:
                LoggingService.warning('auth', f"Unsubscribe failed: {error_message(e)}")
        if self._events is not None:
            self._events.cancel()
        self._gateway_subscription = None
        self._subscribers = []
        self.initialized = False

    @property
    def subscriber_count(self):
        return len(self._subscribers)

    # ----- state -----

    def _set_user(self, user):
        self.user = user_to_dict(user)
        self.role = self.lookup_role(self.user['id']) if self.user else None

    def lookup_role(self, user_id, client=None):
        """Role from the linked users profile row, or None."""
        if not user_id:
            return None
        result = run_query(
            (client or self.client).table('users').select('role').eq('id', user_id).maybe_single(),
            source='auth',
            description='role lookup',
        )
        if result['error'] or not result['data']:
            return None
        return _field(result['data'], 'role')

    def _handle_auth_event(self, event, session):
        self._events(str(getattr(event, 'value', event)), _field(session, 'user'))

    def _apply_event(self, event, user):
        self._set_user(user)
        self._notify(event)

    def _notify(self, event):
        for subscriber in list(self._subscribers):
            try:
                subscriber(event, self.user, self.role)
            except Exception as e:
                LoggingService.log_error_with_traceback('auth', e, {'event': event})

    def check_role(self, required_role, role=None):
        return (role if role is not None else self.role) == required_role

    # ----- operations -----

    def sign_in(self, email, password):
        try:
            gateway = self._client_factory()
            response = gateway.auth.sign_in_with_password({
                'email': email,
                'password': password,
            })
            user = user_to_dict(_field(response, 'user'))
            session = _field(response, 'session')
            if not user or not user['id']:
                return {'data': None, 'error': 'Sign in failed'}

            role = self.lookup_role(user['id'], client=gateway)
            self._touch_last_login(gateway, user['id'])

            return {
                'data': {
                    'user': user,
                    'role': role,
                    'access_token': _field(session, 'access_token'),
                    'refresh_token': _field(session, 'refresh_token'),
                },
                'error': None,
            }
        except Exception as e:
            return {'data': None, 'error': error_message(e, 'Sign in failed')}

    @staticmethod
    def _touch_last_login(gateway, user_id):
        run_query(
            gateway.table('users')
                .update({'last_login': datetime.now(timezone.utc).isoformat()})
                .eq('id', user_id),
            source='auth',
            description='last login update',
        )

    def sign_up(self, email, password, profile=None):
        profile = dict(profile or {})
        try:
            gateway = self._client_factory()
            response = gateway.auth.sign_up({
                'email': email,
                'password': password,
                'options': {'data': profile},
            })
            user = user_to_dict(_field(response, 'user'))

            if user and user['id']:
                row = {'id': user['id'], 'email': email, 'role': 'user'}
                row.update(profile)
                result = run_query(
                    gateway.table('users').insert([row]),
                    source='auth',
                    description='profile insert',
                )
                if result['error']:
                    return {'data': None, 'error': result['error']}

            return {'data': {'user': user}, 'error': None}
        except Exception as e:
            return {'data': None, 'error': error_message(e, 'Sign up failed')}

    def sign_out(self, access_token=None, refresh_token=None):
        """Revoke the caller's session; without tokens there is nothing to revoke."""
        if not access_token:
            return {'data': None, 'error': None}
        try:
            gateway = self._client_factory()
            gateway.auth.set_session(access_token, refresh_token or '')
            gateway.auth.sign_out()
            return {'data': None, 'error': None}
        except Exception as e:
            return {'data': None, 'error': error_message(e, 'Sign out failed')}

    def reset_password(self, email, redirect_to=None):
        """Send the password reset email pointing back at /reset-password."""
        if redirect_to is None:
            redirect_to = f"{str(get_config_value('APP_URL', '')).rstrip('/')}/reset-password"
        try:
            self._client_factory().auth.reset_password_for_email(email, {'redirect_to': redirect_to})
            return {'data': None, 'error': None}
        except Exception as e:
            return {'data': None, 'error': error_message(e, 'Failed to send reset email')}

    def update_password(self, new_password, access_token=None, refresh_token=None):
        if not access_token:
            return {'data': None, 'error': 'No user logged in'}
        try:
            gateway = self._client_factory()
            gateway.auth.set_session(access_token, refresh_token or '')
            gateway.auth.update_user({'password': new_password})
            return {'data': None, 'error': None}
        except Exception as e:
            return {'data': None, 'error': error_message(e, 'Failed to update password')}

    def update_profile(self, fields, user_id=None, client=None):
        if not user_id:
            return {'data': None, 'error': 'No user logged in'}
        return run_query(
            (client or get_supabase()).table('users').update(fields).eq('id', user_id),
            source='auth',
            description='profile update',
        )

    def get_profile(self, user_id=None, client=None):
        """The users row for user_id; data is None when there is no row."""
        if not user_id:
            return {'data': None, 'error': 'No user logged in'}
        return run_query(
            (client or get_supabase()).table('users').select('*').eq('id', user_id).maybe_single(),
            source='auth',
            description='profile fetch',
        )
