"""
AuthSession lifecycle and operations, plus the /auth routes.
"""

import os
import threading
from unittest.mock import MagicMock

import pytest
from flask import Flask

from conftest import make_query
from newsdesk import Newsdesk
from newsdesk.core.logging_service import LoggingService
from newsdesk.modules.auth.session import AuthSession
from newsdesk.modules.auth.utils import friendly_auth_error, validate_email, validate_password


@pytest.fixture
def gateway():
    client = MagicMock()
    client.auth.get_session.return_value = None
    client.auth.on_auth_state_change.return_value = MagicMock(spec=['unsubscribe'])
    client.table.return_value = make_query({'role': 'editor'})
    return client


@pytest.fixture
def auth_session(gateway):
    session = AuthSession(lambda: gateway, lambda: gateway, event_delay=0)
    yield session
    session.teardown()


def _signed_in_response(user_id='u1', email='reporter@example.com'):
    return MagicMock(
        user={'id': user_id, 'email': email, 'user_metadata': {}},
        session={'access_token': 'at-1', 'refresh_token': 'rt-1'},
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_initialize_reads_current_session(gateway, auth_session):
    gateway.auth.get_session.return_value = MagicMock(user={'id': 'u1', 'email': 'a@example.com'})

    auth_session.initialize()

    assert auth_session.initialized
    assert auth_session.user['id'] == 'u1'
    assert auth_session.role == 'editor'
    gateway.auth.on_auth_state_change.assert_called_once()


def test_initialize_twice_subscribes_once(gateway, auth_session):
    auth_session.initialize()
    auth_session.initialize()
    gateway.auth.on_auth_state_change.assert_called_once()


def test_auth_events_reach_subscribers(gateway, auth_session):
    auth_session.initialize()
    handler = gateway.auth.on_auth_state_change.call_args[0][0]
    events = []
    auth_session.on_change(lambda event, user, role: events.append((event, user, role)))

    handler('SIGNED_IN', MagicMock(user={'id': 'u2', 'email': 'b@example.com'}))
    handler('SIGNED_OUT', None)

    assert events[0][0] == 'SIGNED_IN'
    assert events[0][1]['id'] == 'u2'
    assert events[0][2] == 'editor'
    assert events[1] == ('SIGNED_OUT', None, None)


def test_unsubscribe_stops_notifications(gateway, auth_session):
    auth_session.initialize()
    handler = gateway.auth.on_auth_state_change.call_args[0][0]
    subscriber = MagicMock()

    unsubscribe = auth_session.on_change(subscriber)
    assert auth_session.subscriber_count == 1
    unsubscribe()
    unsubscribe()

    handler('SIGNED_OUT', None)
    subscriber.assert_not_called()
    assert auth_session.subscriber_count == 0


def test_failing_subscriber_does_not_block_others(gateway, auth_session):
    auth_session.initialize()
    handler = gateway.auth.on_auth_state_change.call_args[0][0]
    broken = MagicMock(side_effect=RuntimeError('boom'))
    healthy = MagicMock()
    auth_session.on_change(broken)
    auth_session.on_change(healthy)

    handler('SIGNED_OUT', None)

    healthy.assert_called_once_with('SIGNED_OUT', None, None)


def test_teardown_releases_gateway_subscription(gateway, auth_session):
    subscription = gateway.auth.on_auth_state_change.return_value
    auth_session.initialize()
    auth_session.on_change(MagicMock())

    auth_session.teardown()

    subscription.unsubscribe.assert_called_once()
    assert auth_session.subscriber_count == 0
    assert not auth_session.initialized


def test_event_burst_settles_into_one_lookup(gateway):
    auth_session = AuthSession(lambda: gateway, lambda: gateway, event_delay=0.05)
    auth_session.initialize()
    handler = gateway.auth.on_auth_state_change.call_args[0][0]
    settled = threading.Event()
    seen = []

    def subscriber(event, user, role):
        seen.append((event, user['id'], role))
        settled.set()

    auth_session.on_change(subscriber)
    for event in ('SIGNED_IN', 'TOKEN_REFRESHED', 'USER_UPDATED'):
        handler(event, MagicMock(user={'id': 'u2', 'email': 'b@example.com'}))

    assert settled.wait(timeout=5)
    auth_session.teardown()
    assert seen == [('USER_UPDATED', 'u2', 'editor')]
    gateway.table.assert_called_once_with('users')


def test_missing_profile_row_means_no_role(gateway, auth_session):
    query = make_query()
    query.execute.return_value = None
    gateway.table.return_value = query

    assert auth_session.lookup_role('u-without-row') is None
    query.maybe_single.assert_called_once()
    assert LoggingService.get_recent_logs(level='ERROR') == []


def test_check_role(auth_session):
    auth_session.role = 'admin'
    assert auth_session.check_role('admin')
    assert not auth_session.check_role('admin', role='user')


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def test_sign_in_returns_user_role_and_tokens(gateway, auth_session):
    gateway.auth.sign_in_with_password.return_value = _signed_in_response()

    result = auth_session.sign_in('reporter@example.com', 'correct horse')

    assert result['error'] is None
    assert result['data']['user']['id'] == 'u1'
    assert result['data']['role'] == 'editor'
    assert result['data']['access_token'] == 'at-1'
    assert auth_session.user is None
    assert auth_session.role is None
    gateway.auth.sign_in_with_password.assert_called_once_with(
        {'email': 'reporter@example.com', 'password': 'correct horse'})
    (fields,), _ = gateway.table.return_value.update.call_args
    assert 'last_login' in fields


def test_sign_in_failure_is_an_error_result(gateway, auth_session):
    gateway.auth.sign_in_with_password.side_effect = Exception('Invalid login credentials')

    result = auth_session.sign_in('reporter@example.com', 'wrong')

    assert result == {'data': None, 'error': 'Invalid login credentials'}


def test_sign_up_creates_profile_row(gateway, auth_session):
    gateway.auth.sign_up.return_value = MagicMock(user={'id': 'new-user', 'email': 'n@example.com'})

    result = auth_session.sign_up('n@example.com', 'longenough', {'full_name': 'Nia'})

    assert result['error'] is None
    (rows,), _ = gateway.table.return_value.insert.call_args
    assert rows == [{'id': 'new-user', 'email': 'n@example.com', 'role': 'user', 'full_name': 'Nia'}]


def test_sign_out_revokes_the_callers_session(gateway, auth_session):
    assert auth_session.sign_out('at-1', 'rt-1') == {'data': None, 'error': None}

    gateway.auth.set_session.assert_called_once_with('at-1', 'rt-1')
    gateway.auth.sign_out.assert_called_once()


def test_sign_out_without_tokens_skips_the_gateway(gateway, auth_session):
    assert auth_session.sign_out() == {'data': None, 'error': None}
    gateway.auth.sign_out.assert_not_called()


def test_reset_password_points_back_at_app(app, gateway, auth_session):
    with app.app_context():
        auth_session.reset_password('n@example.com')

    gateway.auth.reset_password_for_email.assert_called_once_with(
        'n@example.com', {'redirect_to': 'http://localhost:5000/reset-password'})


def test_update_password_restores_session_first(gateway, auth_session):
    result = auth_session.update_password('new-password', 'at-1', 'rt-1')

    assert result['error'] is None
    gateway.auth.set_session.assert_called_once_with('at-1', 'rt-1')
    gateway.auth.update_user.assert_called_once_with({'password': 'new-password'})


def test_update_profile_needs_a_user(auth_session):
    assert auth_session.update_profile({'bio': 'x'})['error'] == 'No user logged in'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_password_rules():
    assert validate_password('') == 'Password is required'
    assert validate_password('short') == 'Password must be at least 8 characters long'
    assert validate_password('longenough', 'different') == 'Passwords do not match'
    assert validate_password('longenough', 'longenough') is None


def test_email_and_error_helpers():
    assert validate_email('a@example.com')
    assert not validate_email('not-an-email')
    assert friendly_auth_error('Invalid login credentials') == 'Invalid email or password'
    assert friendly_auth_error(None) == 'Failed to sign in'


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_login_route_starts_admin_session(client, supabase_client):
    supabase_client.auth.sign_in_with_password.return_value = _signed_in_response('admin-1')
    supabase_client.table.return_value = make_query({'role': 'admin'})

    response = client.post('/auth/login', json={'email': 'Boss@Example.com', 'password': 'secret-pass'})

    assert response.status_code == 200
    assert response.get_json()['role'] == 'admin'
    with client.session_transaction() as sess:
        assert sess['user_id'] == 'admin-1'
        assert sess['admin_id'] == 'admin-1'
        assert sess['access_token'] == 'at-1'
    supabase_client.auth.sign_in_with_password.assert_called_once_with(
        {'email': 'boss@example.com', 'password': 'secret-pass'})


def test_login_route_bad_credentials(client, supabase_client):
    supabase_client.auth.sign_in_with_password.side_effect = Exception('Invalid login credentials')

    response = client.post('/auth/login', json={'email': 'a@example.com', 'password': 'nope'})

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid email or password'


def test_login_route_requires_both_fields(client, supabase_client):
    response = client.post('/auth/login', json={'email': 'a@example.com'})
    assert response.status_code == 400
    supabase_client.auth.sign_in_with_password.assert_not_called()


def test_signup_route_validates_password(client, supabase_client):
    response = client.post('/auth/signup', json={
        'email': 'n@example.com', 'password': 'short', 'confirm_password': 'short'})
    assert response.status_code == 400
    supabase_client.auth.sign_up.assert_not_called()


def test_signup_route(client, supabase_client):
    supabase_client.auth.sign_up.return_value = MagicMock(user={'id': 'u9', 'email': 'n@example.com'})
    supabase_client.table.return_value = make_query([])

    response = client.post('/auth/signup', json={
        'email': 'n@example.com', 'password': 'longenough', 'confirm_password': 'longenough'})

    assert response.status_code == 200
    assert response.get_json()['success'] is True


def test_forgot_password_route(client, supabase_client):
    response = client.post('/auth/forgot-password', json={'email': 'n@example.com'})

    assert response.status_code == 200
    supabase_client.auth.reset_password_for_email.assert_called_once_with(
        'n@example.com', {'redirect_to': 'http://localhost:5000/reset-password'})


def test_reset_password_route_needs_token(client, supabase_client):
    response = client.post('/auth/reset-password', json={
        'password': 'longenough', 'confirm_password': 'longenough'})
    assert response.status_code == 400
    supabase_client.auth.update_user.assert_not_called()


def test_session_and_logout(user_client, supabase_client):
    assert user_client.get('/auth/session').get_json()['user_id'] == 'user-1'

    response = user_client.post('/auth/logout')

    assert response.status_code == 200
    supabase_client.auth.sign_out.assert_called_once()
    assert user_client.get('/auth/session').status_code == 401


def test_admin_guard(user_client):
    response = user_client.post('/admin/profile/api/notifications/bulk',
                                json={'user_ids': ['a'], 'settings': {'news_alerts': True}})
    assert response.status_code == 403


def test_me_without_profile_row_is_404(user_client, supabase_client):
    query = make_query()
    query.execute.return_value = None
    supabase_client.table.return_value = query

    assert user_client.get('/auth/me').status_code == 404


# ---------------------------------------------------------------------------
# One client per signed-in user
# ---------------------------------------------------------------------------

def _login_response(credentials):
    name = credentials['email'].split('@')[0]
    return MagicMock(
        user={'id': f'id-{name}', 'email': credentials['email'], 'user_metadata': {}},
        session={'access_token': f'at-{name}', 'refresh_token': f'rt-{name}'},
    )


@pytest.fixture
def two_user_app(tmp_db_dir):
    """App whose shared client and per-user clients are told apart."""
    shared = MagicMock()
    shared.auth.get_session.return_value = None
    shared.options.headers = {'Authorization': 'Bearer anon-key'}
    issued = []

    def new_client():
        fresh = MagicMock()
        fresh.options.headers = {'Authorization': 'Bearer anon-key'}
        fresh.auth.sign_in_with_password.side_effect = _login_response
        fresh.table.return_value = make_query({'id': 'profile', 'role': 'editor'})
        issued.append(fresh)
        return fresh

    app = Flask(__name__)
    app.config.update(
        TESTING=True,
        SECRET_KEY='test-secret',
        ENVIRONMENT='testing',
        LOG_DB=os.path.join(tmp_db_dir, 'app_logs.db'),
        SUPABASE_URL='https://example.supabase.co',
        SUPABASE_KEY='anon-key',
        NEWS_API_KEY='test-news-key',
    )
    newsdesk = Newsdesk(app, {'supabase_client': shared, 'client_factory': new_client})
    yield app, shared, issued
    newsdesk.shutdown()


def _login(client, name):
    response = client.post('/auth/login', json={'email': f'{name}@example.com', 'password': 'long-enough'})
    assert response.status_code == 200


def test_sequential_logins_leave_shared_client_untouched(two_user_app):
    app, shared, issued = two_user_app

    _login(app.test_client(), 'ana')
    _login(app.test_client(), 'ben')

    assert shared.options.headers == {'Authorization': 'Bearer anon-key'}
    shared.auth.sign_in_with_password.assert_not_called()
    shared.postgrest.auth.assert_not_called()
    assert len(issued) == 2
    issued[0].auth.sign_in_with_password.assert_called_once()
    issued[1].auth.sign_in_with_password.assert_called_once()
    assert app.extensions['newsdesk'].auth_session.user is None


def test_each_request_runs_as_its_own_user(two_user_app):
    app, shared, issued = two_user_app
    ana, ben = app.test_client(), app.test_client()
    _login(ana, 'ana')
    _login(ben, 'ben')
    del issued[:]

    assert ana.get('/auth/me').status_code == 200
    assert ben.get('/auth/me').status_code == 200

    ana_client, ben_client = issued
    ana_client.postgrest.auth.assert_called_once_with('at-ana')
    ben_client.postgrest.auth.assert_called_once_with('at-ben')
    assert ana_client.options.headers['Authorization'] == 'Bearer at-ana'
    assert ben_client.options.headers['Authorization'] == 'Bearer at-ben'
    shared.table.assert_not_called()


def test_logout_only_revokes_the_callers_session(two_user_app):
    app, shared, issued = two_user_app
    ana, ben = app.test_client(), app.test_client()
    _login(ana, 'ana')
    _login(ben, 'ben')
    del issued[:]

    assert ana.post('/auth/logout').status_code == 200

    (gateway,) = issued
    gateway.auth.set_session.assert_called_once_with('at-ana', 'rt-ana')
    gateway.auth.sign_out.assert_called_once()
    shared.auth.sign_out.assert_not_called()
    assert shared.options.headers == {'Authorization': 'Bearer anon-key'}
    assert ben.get('/auth/session').get_json()['user_id'] == 'id-ben'
