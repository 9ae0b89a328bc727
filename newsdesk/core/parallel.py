"""
Concurrent fetch helper.

Independent reads (users, articles, views, headlines) are issued together
and awaited jointly. A failing source only marks its own section.
"""

from concurrent.futures import ThreadPoolExecutor

from flask import current_app, has_app_context

from .logging_service import LoggingService
from .supabase_client import error_message


def _resolve(app, fetch):
    if app is not None:
        # Worker threads need their own app context for config lookups
        with app.app_context():
            result = fetch()
    else:
        result = fetch()
    # Store calls already come back as {data, error}
    if isinstance(result, dict) and set(result) == {'data', 'error'}:
        return result
    return {'data': result, 'error': None}


def fetch_concurrently(sources, max_workers=None):
    """Run every fetch callable at once and collect per-source results.

    Args:
        sources: dict mapping section name -> zero-argument callable.
        max_workers: thread pool size (defaults to one per source).

    Returns:
        dict mapping section name -> {'data', 'error'}
    """
    if not sources:
        return {}

    app = current_app._get_current_object() if has_app_context() else None

    results = {}
    with ThreadPoolExecutor(max_workers=max_workers or len(sources)) as pool:
        futures = {name: pool.submit(_resolve, app, fetch) for name, fetch in sources.items()}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as e:
                message = error_message(e)
                LoggingService.error('parallel', f"Fetch for '{name}' failed", {'error': message})
                results[name] = {'data': None, 'error': message}
    return results
