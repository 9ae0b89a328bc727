from datetime import date, datetime, timedelta, timezone

from flask import Response, jsonify, make_response, request

from . import analytics_bp
from .aggregation import (
    DEFAULT_TIME_RANGE,
    aggregate_by_category,
    aggregate_by_day,
    article_status_counts,
    user_activity_counts,
    view_counts,
    window_days,
)
from .report import build_report, normalize_time_range, render_report, report_filename
from ..auth.utils import login_required
from ...core.config import get_config_value
from ...core.logging_service import LoggingService
from ...core.parallel import fetch_concurrently
from ...core.supabase_client import get_supabase, run_query

ACTIVE_USER_DAYS = 30


def add_no_cache_headers(response):
    """Add headers to prevent browser caching of analytics data"""
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response


def get_cutoff_date(days, now=None):
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


def _section(result, build):
    """Summarise one fetched source, or pass its error through untouched."""
    if result['error']:
        return {'data': None, 'error': result['error']}
    return {'data': build(result['data'] or []), 'error': None}


@analytics_bp.route('/api/overview')
@login_required
def overview():
    """Users, articles and page views, each fetched and reported on its own"""
    time_range = normalize_time_range(request.args.get('range', DEFAULT_TIME_RANGE))
    days = window_days(time_range)
    start = get_cutoff_date(days).isoformat()

    client = get_supabase()
    users_table = get_config_value('USERS_TABLE', 'users')
    articles_table = get_config_value('ARTICLES_TABLE', 'articles')
    views_table = get_config_value('PAGE_VIEWS_TABLE', 'page_views')

    results = fetch_concurrently({
        'users': lambda: run_query(
            client.table(users_table).select('created_at, last_login'),
            source='analytics', description='user stats'),
        'articles': lambda: run_query(
            client.table(articles_table).select('status, category, created_at, views'),
            source='analytics', description='article stats'),
        'views': lambda: run_query(
            client.table(views_table).select('created_at, user_id').gte('created_at', start),
            source='analytics', description='page views'),
    })

    payload = {
        'time_range': time_range,
        'users': _section(results['users'],
                          lambda rows: user_activity_counts(rows, ACTIVE_USER_DAYS)),
        'articles': _section(results['articles'], article_status_counts),
        'categories': _section(
            results['articles'],
            lambda rows: [
                {'name': pair['category'], 'value': pair['value']}
                for pair in aggregate_by_category(rows, value='count')
            ]),
        'views': _section(results['views'], view_counts),
        'views_by_day': _section(
            results['views'],
            lambda rows: [
                {'date': bucket['date'], 'views': bucket['value']}
                for bucket in aggregate_by_day(rows, days)
            ]),
    }

    failed = [name for name, result in results.items() if result['error']]
    if failed:
        LoggingService.warning('analytics', 'Overview loaded with failed sections', {'failed': failed})

    return add_no_cache_headers(make_response(jsonify(payload)))


def _fetch_report_articles(time_range):
    start = get_cutoff_date(window_days(time_range)).isoformat()
    return run_query(
        get_supabase()
            .table(get_config_value('ARTICLES_TABLE', 'articles'))
            .select('id, title, category, created_at, views')
            .gte('created_at', start),
        source='analytics',
        description='report articles',
    )


@analytics_bp.route('/api/report')
@login_required
def report():
    """Category views, top articles, views trend and engagement for a window"""
    time_range = normalize_time_range(request.args.get('range', DEFAULT_TIME_RANGE))

    result = _fetch_report_articles(time_range)
    if result['error']:
        return jsonify({'error': 'Failed to load report data', 'details': result['error']}), 502

    return add_no_cache_headers(make_response(jsonify(build_report(result['data'], time_range))))


@analytics_bp.route('/api/report/download')
@login_required
def download_report():
    """Plain-text report as a file download"""
    time_range = normalize_time_range(request.args.get('range', DEFAULT_TIME_RANGE))

    result = _fetch_report_articles(time_range)
    if result['error']:
        return jsonify({'error': 'Failed to load report data', 'details': result['error']}), 502

    today = date.today()
    text = render_report(build_report(result['data'], time_range), generated_on=today)

    return Response(
        text,
        mimetype='text/plain',
        headers={'Content-Disposition': f'attachment; filename="{report_filename(today)}"'},
    )
