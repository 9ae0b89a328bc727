"""
News Article Queries
====================

Article reads and writes against the hosted `articles` table.
All functions take the Supabase client explicitly and return
{data, error} results from run_query.
"""

from datetime import datetime, timezone

from ...core.config import get_config_value
from ...core.models import ARTICLE_CATEGORIES, ARTICLE_STATUSES, Article, as_tags
from ...core.supabase_client import run_query

ARTICLE_SELECT = '*, author:users(id, full_name, avatar_url)'

SORTABLE_FIELDS = ('created_at', 'updated_at', 'title', 'views', 'status', 'category')

BULK_ACTIONS = {
    'publish': 'published',
    'unpublish': 'draft',
    'delete': 'deleted',
}


def _table(client):
    return client.table(get_config_value('ARTICLES_TABLE', 'articles'))


def _utc_now_iso(now=None):
    return (now or datetime.now(timezone.utc)).isoformat()


def normalize_filters(filters=None):
    """Keep only non-empty status/category/search values."""
    filters = filters or {}
    return {
        'status': (filters.get('status') or '').strip(),
        'category': (filters.get('category') or '').strip(),
        'search': (filters.get('search') or '').strip(),
    }


def normalize_sort(sort=None):
    """Whitelisted sort field and direction; defaults to newest first."""
    sort = sort or {}
    field = sort.get('field') or 'created_at'
    if field not in SORTABLE_FIELDS:
        field = 'created_at'
    direction = 'asc' if (sort.get('direction') or '').lower() == 'asc' else 'desc'
    return {'field': field, 'direction': direction}


def toggle_sort(current, field):
    """Clicking a column header: same field flips asc -> desc, new field starts asc."""
    current = normalize_sort(current)
    if current['field'] == field and current['direction'] == 'asc':
        return {'field': field, 'direction': 'desc'}
    return {'field': field, 'direction': 'asc'}


def build_article_query(client, filters=None, sort=None):
    """Translate filter/sort state into one read query on the article table."""
    filters = normalize_filters(filters)
    sort = normalize_sort(sort)

    query = _table(client).select(ARTICLE_SELECT)

    if filters['status']:
        query = query.eq('status', filters['status'])
    if filters['category']:
        query = query.eq('category', filters['category'])
    if filters['search']:
        query = query.ilike('title', f"%{filters['search']}%")

    return query.order(sort['field'], desc=sort['direction'] == 'desc')


def list_articles(client, filters=None, sort=None):
    return run_query(build_article_query(client, filters, sort), source='news',
                     description='list articles')


def get_article(client, article_id):
    """One article with its author; data is None when the id does not exist."""
    return run_query(
        _table(client).select(ARTICLE_SELECT).eq('id', article_id).maybe_single(),
        source='news',
        description=f'get article {article_id}',
    )


def create_article(client, article, author_id=None):
    """Insert an Article; author defaults to the signed-in user."""
    if author_id:
        article.author = author_id
    return run_query(
        _table(client).insert([article.to_insert_payload()]),
        source='news',
        description='create article',
    )


def update_article(client, article_id, fields, now=None):
    """Patch an article, normalising tags and stamping updated_at."""
    fields = dict(fields)
    fields.pop('id', None)
    if 'status' in fields and fields['status'] not in ARTICLE_STATUSES:
        return {'data': None, 'error': f"Invalid status: {fields['status']}"}
    if 'tags' in fields:
        fields['tags'] = as_tags(fields['tags'])
    fields['updated_at'] = _utc_now_iso(now)
    return run_query(
        _table(client).update(fields).eq('id', article_id),
        source='news',
        description=f'update article {article_id}',
    )


def soft_delete_article(client, article_id, now=None):
    """Flag an article as deleted; the row is kept."""
    return run_query(
        _table(client).update({
            'status': 'deleted',
            'updated_at': _utc_now_iso(now),
        }).match({'id': article_id}),
        source='news',
        description=f'soft delete article {article_id}',
    )


def build_status_updates(ids, action, now=None):
    """Rows for a bulk status change: one {id, status, updated_at} per id."""
    if action not in BULK_ACTIONS:
        raise ValueError('Invalid action')
    stamp = _utc_now_iso(now)
    status = BULK_ACTIONS[action]
    return [{'id': article_id, 'status': status, 'updated_at': stamp} for article_id in ids]


def bulk_update_status(client, ids, action, now=None):
    """Apply publish/unpublish/delete to the selected ids in one batched upsert."""
    ids = [article_id for article_id in (ids or []) if article_id is not None]
    updates = build_status_updates(ids, action, now)
    if not updates:
        return {'data': [], 'error': None}
    return run_query(
        _table(client).upsert(updates),
        source='news',
        description=f'bulk {action} of {len(updates)} articles',
    )


def get_categories():
    return [
        {'id': index, 'name': slug.title(), 'slug': slug}
        for index, slug in enumerate(ARTICLE_CATEGORIES, start=1)
    ]


def article_from_form(data, default_status='pending'):
    """Build an Article from a create/edit form payload."""
    return Article.from_row({
        'title': (data.get('title') or '').strip(),
        'content': (data.get('content') or '').strip(),
        'summary': (data.get('summary') or '').strip() or None,
        'category': (data.get('category') or '').strip() or None,
        'image_url': data.get('image_url') or None,
        'image_path': data.get('image_path') or None,
        'video_url': data.get('video_url') or None,
        'video_path': data.get('video_path') or None,
        'mobile_preview_url': data.get('mobile_preview_url') or data.get('mobilePreview') or None,
        'tags': data.get('tags'),
        'status': data.get('status') or default_status,
    })
