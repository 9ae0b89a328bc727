"""
Aggregation helpers for analytics and reports.

Every function takes plain row dicts as returned by the data store and is
a pure transform: same rows in, same summaries out. Missing numbers count
as zero and missing categories are left out.
"""

import math
from datetime import datetime, timedelta, timezone

from dateutil import parser as date_parser

from ...core.models import PageView

TIME_RANGES = {
    '7d': 7,
    '30d': 30,
    '90d': 90,
}

DEFAULT_TIME_RANGE = '7d'


def window_days(time_range):
    """Map a range label ('7d', '30d', '90d' or an int) to days; default 7."""
    if isinstance(time_range, int) and time_range in TIME_RANGES.values():
        return time_range
    label = str(time_range or '').strip().lower()
    if label.isdigit():
        label = f"{label}d"
    return TIME_RANGES.get(label, TIME_RANGES[DEFAULT_TIME_RANGE])


def views_of(row):
    """View count of a row; missing or bad values count as 0."""
    try:
        return max(int((row or {}).get('views') or 0), 0)
    except (TypeError, ValueError):
        return 0


def category_of(row):
    category = (row or {}).get('category')
    if category is None:
        return None
    category = str(category).strip()
    return category or None


def parse_timestamp(value):
    """Parse an ISO-8601 timestamp into an aware datetime (naive = UTC)."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def local_day(value):
    """Local calendar date (YYYY-MM-DD) of a timestamp, or None."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.astimezone().date().isoformat()


def _now(now=None):
    if now is None:
        return datetime.now(timezone.utc)
    return parse_timestamp(now)


def aggregate_by_category(rows, value='views', sort=False):
    """Sum views (or count items) per category.

    Args:
        rows: iterable of row dicts.
        value: 'views' to sum view counts, 'count' to count rows.
        sort: True for descending by value, False keeps first-seen order.

    Returns:
        [{'category': name, 'value': total}, ...]
    """
    totals = {}
    for row in rows or []:
        category = category_of(row)
        if category is None:
            continue
        amount = 1 if value == 'count' else views_of(row)
        totals[category] = totals.get(category, 0) + amount

    pairs = [{'category': name, 'value': total} for name, total in totals.items()]
    if sort:
        pairs.sort(key=lambda p: p['value'], reverse=True)
    return pairs


def aggregate_by_day(rows, days, field=None, timestamp_key='created_at', now=None):
    """Bucket rows by local calendar day over a trailing window.

    Only rows with start <= timestamp <= now are kept, where
    start = now - days. Days without rows get no bucket, so sparse data
    leaves gaps rather than zero entries.

    Args:
        rows: iterable of row dicts.
        days: window length in days.
        field: numeric field to sum per bucket; None counts rows.
        timestamp_key: which timestamp field to bucket on.
        now: reference time (defaults to the current time).

    Returns:
        [{'date': 'YYYY-MM-DD', 'value': total}, ...] ascending by date
    """
    end = _now(now)
    start = end - timedelta(days=days)

    buckets = {}
    for row in rows or []:
        stamp = parse_timestamp((row or {}).get(timestamp_key))
        if stamp is None or stamp < start or stamp > end:
            continue
        key = stamp.astimezone().date().isoformat()
        if field is None:
            amount = 1
        elif field == 'views':
            amount = views_of(row)
        else:
            try:
                amount = float(row.get(field) or 0)
            except (TypeError, ValueError):
                amount = 0
        buckets[key] = buckets.get(key, 0) + amount

    return [{'date': day, 'value': buckets[day]} for day in sorted(buckets)]


def top_articles(rows, limit=10):
    """Most viewed categorized articles, projected for display."""
    ranked = sorted(
        (row for row in rows or [] if category_of(row) is not None),
        key=views_of,
        reverse=True,
    )
    return [
        {
            'title': row.get('title') or '',
            'views': views_of(row),
            'category': category_of(row),
        }
        for row in ranked[:limit]
    ]


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def engagement_summary(rows, category_views=None):
    """Average views, most active category and article count.

    Args:
        rows: article rows.
        category_views: output of aggregate_by_category(sort=True); computed
            when omitted.
    """
    rows = list(rows or [])
    if category_views is None:
        category_views = aggregate_by_category(rows, sort=True)

    total_views = sum(views_of(row) for row in rows)
    average = _round_half_up(total_views / len(rows)) if rows else 0

    return [
        {'metric': 'Average Views per Article', 'value': average},
        {'metric': 'Most Active Category',
         'value': category_views[0]['category'] if category_views else 'N/A'},
        {'metric': 'Total Articles', 'value': len(rows)},
    ]


def article_status_counts(rows):
    """Totals per article status."""
    rows = list(rows or [])
    counts = {'total': len(rows), 'published': 0, 'draft': 0, 'pending': 0, 'deleted': 0}
    for row in rows:
        status = (row or {}).get('status')
        if status in counts and status != 'total':
            counts[status] += 1
    return counts


def user_activity_counts(users, active_days=30, now=None):
    """Total users, recently active users and recently created users."""
    users = list(users or [])
    cutoff = _now(now) - timedelta(days=active_days)

    def _after_cutoff(value):
        stamp = parse_timestamp(value)
        return stamp is not None and stamp > cutoff

    return {
        'total': len(users),
        'active': sum(1 for u in users if _after_cutoff(u.get('last_login'))),
        'new': sum(1 for u in users if _after_cutoff(u.get('created_at'))),
    }


def view_counts(views):
    """Total page views and distinct signed-in viewers."""
    views = [PageView.from_row(v) for v in views or []]
    return {
        'total': len(views),
        'unique': len({v.user_id for v in views if v.user_id}),
    }


def total_views(rows):
    return sum(views_of(row) for row in rows or [])
