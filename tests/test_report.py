"""
Report building and the plain-text download layout.
"""

from datetime import date, datetime, timedelta

from newsdesk.modules.analytics.report import (
    build_report,
    normalize_time_range,
    render_report,
    report_filename,
)

NOW = datetime(2024, 3, 15, 12, 0).astimezone()


def _articles():
    return [
        {'title': 'Chip shortage eases', 'category': 'tech', 'views': 10,
         'created_at': (NOW - timedelta(days=1)).isoformat()},
        {'title': 'New phone launched', 'category': 'tech', 'views': 5,
         'created_at': (NOW - timedelta(days=1)).isoformat()},
        {'title': 'Cup final recap', 'category': 'sports', 'views': 20,
         'created_at': (NOW - timedelta(days=3)).isoformat()},
        {'title': 'Uncategorised viral post', 'category': None, 'views': 99,
         'created_at': (NOW - timedelta(days=2)).isoformat()},
    ]


def test_report_sections():
    report = build_report(_articles(), '7d', now=NOW)

    assert report['time_range'] == '7d'
    assert report['category_views'] == [
        {'category': 'sports', 'views': 20},
        {'category': 'tech', 'views': 15},
    ]
    assert report['top_articles'][0]['title'] == 'Cup final recap'
    assert all(a['category'] for a in report['top_articles'])
    assert [b['date'] for b in report['views_trend']] == sorted(b['date'] for b in report['views_trend'])
    assert report['total_views'] == 134

    metrics = {m['metric']: m['value'] for m in report['engagement']}
    assert metrics['Most Active Category'] == 'sports'
    assert metrics['Total Articles'] == 4
    assert metrics['Average Views per Article'] == 34


def test_empty_report():
    report = build_report([], '30d', now=NOW)

    assert report['category_views'] == []
    assert report['top_articles'] == []
    assert report['views_trend'] == []
    metrics = {m['metric']: m['value'] for m in report['engagement']}
    assert metrics['Average Views per Article'] == 0
    assert metrics['Most Active Category'] == 'N/A'


def test_unknown_range_falls_back_to_week():
    assert normalize_time_range('365d') == '7d'
    assert normalize_time_range(None) == '7d'
    assert normalize_time_range('90D') == '90d'


def test_render_report_layout():
    report = build_report(_articles(), '7d', now=NOW)
    text = render_report(report, generated_on=date(2024, 3, 15))
    lines = text.splitlines()

    assert lines[0] == 'News Report - 2024-03-15'
    assert 'Time Range: Last 7d' in lines
    assert lines.index('Category Performance:') < lines.index('Top Articles:') < lines.index('Engagement Metrics:')
    assert 'sports: 20 views' in lines
    assert 'Cup final recap (20 views)' in lines
    assert 'Most Active Category: sports' in lines


def test_report_filename():
    assert report_filename(date(2024, 3, 15)) == 'news-report-2024-03-15.txt'
