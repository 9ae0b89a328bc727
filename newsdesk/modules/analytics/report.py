"""
News report building and plain-text export.
"""

from datetime import date

from .aggregation import (
    DEFAULT_TIME_RANGE,
    TIME_RANGES,
    aggregate_by_category,
    aggregate_by_day,
    engagement_summary,
    top_articles,
    views_of,
    window_days,
)


def normalize_time_range(time_range):
    label = str(time_range or '').strip().lower()
    return label if label in TIME_RANGES else DEFAULT_TIME_RANGE


def build_report(articles, time_range=DEFAULT_TIME_RANGE, now=None):
    """Derive every report section from one set of article rows."""
    articles = list(articles or [])
    time_range = normalize_time_range(time_range)

    category_views = [
        {'category': pair['category'], 'views': pair['value']}
        for pair in aggregate_by_category(articles, value='views', sort=True)
    ]

    views_trend = [
        {'date': bucket['date'], 'views': int(bucket['value'])}
        for bucket in aggregate_by_day(
            articles, window_days(time_range), field='views', now=now
        )
    ]

    engagement = engagement_summary(
        articles,
        [{'category': c['category'], 'value': c['views']} for c in category_views],
    )

    return {
        'time_range': time_range,
        'category_views': category_views,
        'top_articles': top_articles(articles, limit=10),
        'views_trend': views_trend,
        'engagement': engagement,
        'total_views': sum(views_of(a) for a in articles),
    }


def render_report(report, generated_on=None):
    """Render a report dict into the downloadable text layout."""
    generated_on = generated_on or date.today()

    lines = [
        f"News Report - {generated_on.isoformat()}",
        "",
        f"Time Range: Last {report.get('time_range', DEFAULT_TIME_RANGE)}",
        "",
        "Category Performance:",
    ]
    lines.extend(
        f"{item['category']}: {item['views']} views"
        for item in report.get('category_views', [])
    )
    lines.extend(["", "Top Articles:"])
    lines.extend(
        f"{item['title']} ({item['views']} views)"
        for item in report.get('top_articles', [])
    )
    lines.extend(["", "Engagement Metrics:"])
    lines.extend(
        f"{item['metric']}: {item['value']}"
        for item in report.get('engagement', [])
    )
    return "\n".join(lines).strip()


def report_filename(generated_on=None):
    generated_on = generated_on or date.today()
    return f"news-report-{generated_on.isoformat()}.txt"
