"""
Headlines Feed Client
=====================

Fetches current top headlines from newsapi.org.
The API key always comes from configuration.
"""

import requests

from ...core.config import get_config_value
from ...core.logging_service import LoggingService


class HeadlinesError(Exception):
    """The headlines feed answered with an error or could not be reached."""


def fetch_top_headlines(api_key=None, category=None, page_size=None, country=None,
                        timeout=None, base_url=None):
    """
    Fetch top headlines, optionally for one category.

    Args:
        api_key: newsapi.org key (defaults to NEWS_API_KEY)
        category: one of the feed categories, or None / 'all' for every category
        page_size: number of articles to request
        country: two-letter country code (defaults to NEWS_API_COUNTRY)
        timeout: seconds before giving up (defaults to NEWS_API_TIMEOUT)

    Returns:
        list of article dicts, each tagged with a 'category'

    Raises:
        HeadlinesError on non-2xx responses, error-shaped bodies or network failures
    """
    api_key = api_key or get_config_value('NEWS_API_KEY')
    if not api_key:
        raise HeadlinesError('No headlines API key configured')

    base_url = (base_url or get_config_value('NEWS_API_BASE_URL', 'https://newsapi.org/v2')).rstrip('/')
    if timeout is None:
        timeout = int(get_config_value('NEWS_API_TIMEOUT', 30000)) / 1000.0

    params = {
        'country': country or get_config_value('NEWS_API_COUNTRY', 'us'),
        'apiKey': api_key,
    }
    if page_size:
        params['pageSize'] = int(page_size)
    if category and category != 'all':
        params['category'] = category

    endpoint = f"{base_url}/top-headlines"

    try:
        response = requests.get(endpoint, params=params, timeout=timeout)
    except requests.RequestException as e:
        LoggingService.error('trending', f"Headlines request failed: {e}")
        raise HeadlinesError(f"Failed to fetch news: {e}") from e

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    if not response.ok or payload.get('status') == 'error':
        message = payload.get('message') or f"Failed to fetch news (HTTP {response.status_code})"
        LoggingService.log_api_call('trending', '/top-headlines', 'GET', response.status_code,
                                    {'category': category, 'message': message})
        raise HeadlinesError(message)

    default_category = get_config_value('DEFAULT_CATEGORY', 'general')
    tagged = category if category and category != 'all' else default_category

    articles = []
    for article in payload.get('articles') or []:
        if not isinstance(article, dict):
            continue
        item = dict(article)
        item['category'] = item.get('category') or tagged
        articles.append(item)
    return articles


def headline_to_article(headline, category=None):
    """Map a feed headline onto an articles row for import as a draft."""
    source = headline.get('source') or {}
    default_category = get_config_value('DEFAULT_CATEGORY', 'general')
    return {
        'title': headline.get('title') or '',
        'content': headline.get('content') or headline.get('description') or '',
        'summary': headline.get('description'),
        'image_url': headline.get('urlToImage'),
        'category': headline.get('category') or category or default_category,
        'source': source.get('name') if isinstance(source, dict) else source,
        'published_at': headline.get('publishedAt'),
        'url': headline.get('url'),
        'status': 'draft',
    }
