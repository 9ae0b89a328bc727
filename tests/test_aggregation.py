"""
Aggregation pipeline tests: category sums, day buckets, top-N ranking
and the engagement summary.
"""

from datetime import datetime, timedelta

import pytest

from newsdesk.modules.analytics.aggregation import (
    aggregate_by_category,
    aggregate_by_day,
    article_status_counts,
    engagement_summary,
    top_articles,
    user_activity_counts,
    view_counts,
    window_days,
)

# Local noon keeps every offset below on the intended calendar day
NOW = datetime(2024, 3, 15, 12, 0).astimezone()


def _day(dt):
    return dt.astimezone().date().isoformat()


SCENARIO = [
    {'title': 'Chip shortage eases', 'category': 'tech', 'views': 10},
    {'title': 'New phone launched', 'category': 'tech', 'views': 5},
    {'title': 'Cup final recap', 'category': 'sports', 'views': 20},
    {'title': 'Uncategorised viral post', 'category': None, 'views': 99},
]


# ---------------------------------------------------------------------------
# Category aggregation
# ---------------------------------------------------------------------------

def test_category_views_scenario():
    totals = {p['category']: p['value'] for p in aggregate_by_category(SCENARIO)}
    assert totals == {'tech': 15, 'sports': 20}


def test_top_article_skips_uncategorised():
    top = top_articles(SCENARIO, limit=1)
    assert len(top) == 1
    assert top[0]['title'] == 'Cup final recap'
    assert top[0]['views'] == 20


@pytest.mark.parametrize('rows', [
    [],
    [{'category': 'health', 'views': 3}],
    [{'category': '', 'views': 7}, {'category': 'science', 'views': None},
     {'views': 4}, {'category': 'science', 'views': 8}, {'category': 'general', 'views': 1}],
    [{'category': c, 'views': v} for c, v in zip('abcabcab', range(8))],
])
def test_category_sum_matches_categorised_views(rows):
    expected = sum((r.get('views') or 0) for r in rows if r.get('category'))
    assert sum(p['value'] for p in aggregate_by_category(rows)) == expected


def test_category_count_mode_and_sorting():
    rows = [{'category': 'a'}, {'category': 'b'}, {'category': 'b'}, {'category': None}]
    counts = aggregate_by_category(rows, value='count')
    assert counts == [{'category': 'a', 'value': 1}, {'category': 'b', 'value': 2}]

    ranked = aggregate_by_category(rows, value='count', sort=True)
    assert [p['category'] for p in ranked] == ['b', 'a']


def test_missing_views_count_as_zero():
    rows = [{'category': 'tech'}, {'category': 'tech', 'views': 'oops'}, {'category': 'tech', 'views': 2}]
    assert aggregate_by_category(rows) == [{'category': 'tech', 'value': 2}]


# ---------------------------------------------------------------------------
# Day buckets
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('days', [7, 30, 90])
def test_day_buckets_stay_inside_window_and_ascend(days):
    rows = [
        {'created_at': (NOW - timedelta(days=offset, hours=1)).isoformat(), 'views': offset}
        for offset in (0, 1, 3, 6, 10, 29, 45, 89, 120)
    ]
    rows.append({'created_at': (NOW + timedelta(days=2)).isoformat(), 'views': 5})

    buckets = aggregate_by_day(rows, days, field='views', now=NOW)

    first_day = _day(NOW - timedelta(days=days))
    last_day = _day(NOW)
    keys = [b['date'] for b in buckets]
    assert all(first_day <= key <= last_day for key in keys)
    assert keys == sorted(set(keys))


def test_day_buckets_leave_gaps_for_empty_days():
    rows = [
        {'created_at': (NOW - timedelta(days=1)).isoformat()},
        {'created_at': (NOW - timedelta(days=1, hours=2)).isoformat()},
        {'created_at': (NOW - timedelta(days=4)).isoformat()},
    ]

    buckets = aggregate_by_day(rows, 7, now=NOW)

    assert buckets == [
        {'date': _day(NOW - timedelta(days=4)), 'value': 1},
        {'date': _day(NOW - timedelta(days=1)), 'value': 2},
    ]
    assert all(b['value'] > 0 for b in buckets)


def test_day_buckets_can_use_another_timestamp():
    rows = [
        {'created_at': (NOW - timedelta(days=60)).isoformat(),
         'updated_at': (NOW - timedelta(days=2)).isoformat(), 'views': 12},
    ]
    assert aggregate_by_day(rows, 7, field='views', now=NOW) == []
    assert aggregate_by_day(rows, 7, field='views', timestamp_key='updated_at', now=NOW) == [
        {'date': _day(NOW - timedelta(days=2)), 'value': 12},
    ]


def test_day_buckets_ignore_unparseable_timestamps():
    rows = [{'created_at': 'not a date'}, {'created_at': None}, {}]
    assert aggregate_by_day(rows, 7, now=NOW) == []


def test_window_days_labels():
    assert window_days('7d') == 7
    assert window_days('30d') == 30
    assert window_days('90d') == 90
    assert window_days('30') == 30
    assert window_days('bogus') == 7


# ---------------------------------------------------------------------------
# Top articles
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('count', [0, 3, 10, 25])
def test_top_articles_length_and_order(count):
    rows = [{'title': f'Story {i}', 'category': 'general', 'views': (i * 7) % 11}
            for i in range(count)]

    top = top_articles(rows)

    assert len(top) == min(10, count)
    views = [a['views'] for a in top]
    assert views == sorted(views, reverse=True)


# ---------------------------------------------------------------------------
# Engagement and counts
# ---------------------------------------------------------------------------

def test_engagement_of_no_articles():
    metrics = {m['metric']: m['value'] for m in engagement_summary([])}
    assert metrics['Average Views per Article'] == 0
    assert metrics['Most Active Category'] == 'N/A'
    assert metrics['Total Articles'] == 0


def test_engagement_rounds_average_half_up():
    rows = [{'category': 'tech', 'views': 1}, {'category': 'sports', 'views': 2}]
    metrics = {m['metric']: m['value'] for m in engagement_summary(rows)}
    assert metrics['Average Views per Article'] == 2
    assert metrics['Most Active Category'] == 'sports'


def test_article_status_counts():
    rows = [{'status': 'published'}, {'status': 'draft'}, {'status': 'draft'}, {'status': 'odd'}]
    counts = article_status_counts(rows)
    assert counts['total'] == 4
    assert counts['published'] == 1
    assert counts['draft'] == 2


def test_user_activity_counts():
    users = [
        {'created_at': (NOW - timedelta(days=2)).isoformat(),
         'last_login': (NOW - timedelta(days=1)).isoformat()},
        {'created_at': (NOW - timedelta(days=200)).isoformat(),
         'last_login': (NOW - timedelta(days=40)).isoformat()},
        {'created_at': (NOW - timedelta(days=300)).isoformat(), 'last_login': None},
    ]
    assert user_activity_counts(users, 30, now=NOW) == {'total': 3, 'active': 1, 'new': 1}


def test_view_counts_unique_viewers():
    views = [{'user_id': 'a'}, {'user_id': 'a'}, {'user_id': 'b'}, {'user_id': None}]
    assert view_counts(views) == {'total': 4, 'unique': 2}
