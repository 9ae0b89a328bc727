"""
Admin Dashboard Routes
======================

Summary statistics for the dashboard cards and charts. Articles, users
and headlines are fetched together; a failing source only blanks its own
section.
"""

from datetime import datetime, timezone

from flask import jsonify, session

from . import dashboard_bp
from ..analytics.aggregation import (
    aggregate_by_day,
    article_status_counts,
    local_day,
    total_views,
    user_activity_counts,
)
from ..auth.utils import login_required
from ..trending.headlines import fetch_top_headlines
from ...core.config import get_config_value
from ...core.logging_service import LoggingService
from ...core.parallel import fetch_concurrently
from ...core.supabase_client import get_supabase, run_query

ACTIVE_USER_DAYS = 7
TREND_DAYS = 7
RECENT_ARTICLES = 5
TRENDING_HEADLINES = 5


def _article_stats(articles, now=None):
    now = now or datetime.now(timezone.utc)
    today = local_day(now)
    counts = article_status_counts(articles)
    return {
        'articles': {
            'total': counts['total'],
            'published': counts['published'],
            'draft': counts['draft'],
        },
        'views': {
            'total': total_views(articles),
            'today': total_views(a for a in articles if local_day(a.get('updated_at')) == today),
        },
        'views_trend': [
            {'date': bucket['date'], 'views': int(bucket['value'])}
            for bucket in aggregate_by_day(articles, TREND_DAYS, field='views',
                                           timestamp_key='updated_at', now=now)
        ],
        'recent_articles': [
            {
                'id': a.get('id'),
                'title': a.get('title'),
                'status': a.get('status'),
                'created_at': a.get('created_at'),
            }
            for a in articles[:RECENT_ARTICLES]
        ],
    }


@dashboard_bp.route('/api/stats')
@login_required
def api_stats():
    """Dashboard statistics, one section per data source"""
    client = get_supabase()
    articles_table = get_config_value('ARTICLES_TABLE', 'articles')
    users_table = get_config_value('USERS_TABLE', 'users')

    results = fetch_concurrently({
        'articles': lambda: run_query(
            client.table(articles_table).select('*').order('created_at', desc=True),
            source='dashboard', description='articles'),
        'users': lambda: run_query(
            client.table(users_table).select('id, created_at, last_login'),
            source='dashboard', description='users'),
        'trending': lambda: fetch_top_headlines(page_size=TRENDING_HEADLINES),
    })

    stats = {}

    articles = results['articles']
    if articles['error']:
        stats['articles'] = {'data': None, 'error': articles['error']}
    else:
        stats['articles'] = {'data': _article_stats(articles['data'] or []), 'error': None}

    users = results['users']
    if users['error']:
        stats['users'] = {'data': None, 'error': users['error']}
    else:
        counts = user_activity_counts(users['data'] or [], ACTIVE_USER_DAYS)
        stats['users'] = {'data': {'total': counts['total'], 'active': counts['active']},
                          'error': None}

    trending = results['trending']
    stats['trending'] = {
        'data': (trending['data'] or [])[:TRENDING_HEADLINES] if not trending['error'] else None,
        'error': trending['error'],
    }

    failed = [name for name, result in results.items() if result['error']]
    if failed:
        LoggingService.warning('dashboard', 'Dashboard loaded with failed sections',
                               {'failed': failed}, user_id=session.get('user_id'))

    return jsonify(stats)
