"""
Shared fixtures: a Flask app with every Newsdesk module registered and a
MagicMock standing in for the Supabase client.
"""

import os
import shutil
import tempfile
from unittest.mock import MagicMock

import pytest
from flask import Flask

from newsdesk import Newsdesk
from newsdesk.core.config import Config

QUERY_METHODS = (
    'select', 'eq', 'ilike', 'gte', 'order', 'match', 'limit',
    'insert', 'update', 'upsert', 'single', 'maybe_single',
)


def make_query(data=None, error=None):
    """A chainable query builder whose execute() returns data (or raises)."""
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    if error is not None:
        query.execute.side_effect = Exception(error)
    else:
        query.execute.return_value = MagicMock(data=data if data is not None else [])
    return query


def route_tables(client, tables):
    """Make client.table(name) return tables[name]."""
    client.table.side_effect = lambda name: tables[name]


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for the log database, cleaned up after."""
    d = tempfile.mkdtemp(prefix="newsdesk-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_log_db(tmp_db_dir, monkeypatch):
    """Logs written outside an app context land in the temp dir too."""
    monkeypatch.setattr(Config, 'LOG_DB', os.path.join(tmp_db_dir, 'app_logs.db'))


@pytest.fixture
def supabase_client():
    client = MagicMock()
    client.auth.get_session.return_value = None
    client.storage.list_buckets.return_value = []
    return client


@pytest.fixture
def app(tmp_db_dir, supabase_client):
    """Fully initialised Flask app with all Newsdesk modules registered."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["ENVIRONMENT"] = "testing"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["LOG_DB"] = os.path.join(tmp_db_dir, "app_logs.db")
    app.config["SUPABASE_URL"] = "https://example.supabase.co"
    app.config["SUPABASE_KEY"] = "anon-key"
    app.config["NEWS_API_KEY"] = "test-news-key"
    app.config["APP_URL"] = "http://localhost:5000"

    # Per-user clients are the same mock so route tests see every call
    newsdesk = Newsdesk(app, {
        'supabase_client': supabase_client,
        'client_factory': lambda: supabase_client,
    })
    yield app
    newsdesk.shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


def sign_in(client, user_id='user-1', role='user'):
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['email'] = f'{user_id}@example.com'
        sess['role'] = role
        sess['access_token'] = 'access-token'
        sess['refresh_token'] = 'refresh-token'
        if role == 'admin':
            sess['admin_id'] = user_id


@pytest.fixture
def user_client(client):
    sign_in(client)
    return client


@pytest.fixture
def admin_client(client):
    sign_in(client, user_id='admin-1', role='admin')
    return client
