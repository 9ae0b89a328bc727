"""
Supabase Client
===============

Two kinds of client:

- the app-wide client, created lazily from config and stored on the Flask
  extension. It only ever carries the anon key and listens for gateway
  events; nothing signs in on it.
- short-lived clients from ``Newsdesk.new_client()``. Sign-in, sign-up,
  sign-out and password changes each get their own, and a request made by
  a signed-in user gets one scoped to that user's access token.

Tests swap in their own through the extension options.
"""

from flask import current_app, g, has_request_context, session
from supabase import create_client

from .config import get_config_value
from .logging_service import LoggingService

# PostgREST answers these when a single-row read matches nothing
NO_ROW_CODES = ('PGRST116', '204')


def create_supabase_client(url=None, key=None):
    """Create a Supabase client from explicit values or configuration."""
    url = url or get_config_value('SUPABASE_URL')
    key = key or get_config_value('SUPABASE_KEY')
    if not url or not key:
        raise RuntimeError('SUPABASE_URL and SUPABASE_KEY must be configured')
    return create_client(url, key)


def _extension():
    ext = current_app.extensions.get('newsdesk')
    if ext is None:
        raise RuntimeError('Newsdesk is not initialised on this app')
    return ext


def scope_to_token(client, access_token):
    """Make every table and storage call on client run as the token's user."""
    # Storage is built lazily from these headers, PostgREST is told directly
    client.options.headers['Authorization'] = f'Bearer {access_token}'
    client.postgrest.auth(access_token)
    return client


def get_supabase():
    """
    Client for table and storage calls in the current context.

    Inside a request from a signed-in user this is a client of its own,
    scoped to the user's access token and reused for the rest of the
    request. Anywhere else it is the app-wide anon client.
    """
    ext = _extension()
    token = session.get('access_token') if has_request_context() else None
    if not token:
        return ext.get_client()
    if 'newsdesk_client' not in g:
        g.newsdesk_client = scope_to_token(ext.new_client(), token)
    return g.newsdesk_client


def error_message(error, default='Request failed'):
    """Best-effort human readable message from a client exception."""
    if error is None:
        return default
    message = getattr(error, 'message', None)
    if not message and isinstance(error, dict):
        message = error.get('message')
    return message or str(error) or default


def _is_no_row(error):
    return str(getattr(error, 'code', '')) in NO_ROW_CODES


def run_query(query, source='database', description=None):
    """
    Execute a prepared query builder and wrap the outcome.

    A single-row read that matches nothing comes back as data None with
    no error, whether the client returns no response or raises PGRST116.

    Returns:
        dict with {data, error}; error is a message string or None.
    """
    try:
        response = query.execute()
    except Exception as e:
        if _is_no_row(e):
            return {'data': None, 'error': None}
        message = error_message(e)
        LoggingService.error(source, f"Query failed: {description or 'query'}", {
            'error': message,
            'error_type': type(e).__name__,
        })
        return {'data': None, 'error': message}

    if response is None:
        return {'data': None, 'error': None}
    data = getattr(response, 'data', None)
    return {'data': data if data is not None else [], 'error': None}
