"""
News Admin Routes
=================

Article management for the admin: list with filters, create, edit,
soft-delete, bulk status changes and media upload.
"""

from flask import request, session, jsonify

from . import news_bp
from .database import (
    article_from_form,
    bulk_update_status,
    create_article as create_article_db,
    get_article as get_article_db,
    get_categories,
    list_articles,
    normalize_sort,
    soft_delete_article,
    toggle_sort,
    update_article as update_article_db,
    BULK_ACTIONS,
    SORTABLE_FIELDS,
)
from .validation import validate_article_form
from ..auth.utils import login_required
from ...core.config import get_config_value
from ...core.logging_service import LoggingService
from ...core.models import ARTICLE_STATUSES
from ...core.storage import delete_file, upload_file, validate_file
from ...core.supabase_client import error_message, get_supabase

EDITABLE_FIELDS = (
    'title', 'content', 'summary', 'category', 'image_url', 'image_path',
    'video_url', 'video_path', 'mobile_preview_url', 'tags', 'status',
)

MEDIA_FOLDERS = (('image', 'news/images'), ('video', 'news/videos'))


def _file_info(file):
    """Read an uploaded file into (bytes, info dict)."""
    data = file.read()
    return data, {
        'content_type': file.mimetype or '',
        'size': len(data),
        'filename': file.filename or '',
    }


def _collect_media():
    """Read and validate every attached media file before anything is uploaded.

    Returns ([(media_type, folder, bytes, info), ...], None) or (None, error).
    """
    media = []
    for media_type, folder in MEDIA_FOLDERS:
        file = request.files.get(media_type)
        if file is None or not file.filename:
            continue
        data, info = _file_info(file)
        validation = validate_file(info)
        if not validation['valid']:
            return None, validation['error']
        media.append((media_type, folder, data, info))
    return media, None


def _discard_uploads(uploads):
    """Remove objects stored for an article that was never created."""
    for stored in uploads:
        try:
            delete_file(stored['bucket'], stored['path'])
        except Exception as e:
            LoggingService.warning('news', 'Could not remove orphaned upload', {
                'bucket': stored['bucket'],
                'path': stored['path'],
                'error': error_message(e),
            })


def _upstream_error(result, default):
    return jsonify({'error': result.get('error') or default}), 502


# ===== Routes =====

@news_bp.route('/api/categories', methods=['GET'])
@login_required
def categories():
    """Fixed category list for the article forms"""
    return jsonify(get_categories())


@news_bp.route('/api/articles', methods=['GET'])
@login_required
def get_articles():
    """List articles with status/category/search filters and one sort field"""
    filters = {
        'status': request.args.get('status', ''),
        'category': request.args.get('category', ''),
        'search': request.args.get('search', ''),
    }
    sort = normalize_sort({
        'field': request.args.get('sort', 'created_at'),
        'direction': request.args.get('direction', 'desc'),
    })
    # Column header click
    toggle = request.args.get('toggle')
    if toggle in SORTABLE_FIELDS:
        sort = toggle_sort(sort, toggle)

    result = list_articles(get_supabase(), filters, sort)
    if result['error']:
        return _upstream_error(result, 'Failed to fetch articles')

    response = jsonify(result['data'] or [])
    response.headers['X-Sort-Field'] = sort['field']
    response.headers['X-Sort-Direction'] = sort['direction']
    return response


@news_bp.route('/api/list-options', methods=['GET'])
@login_required
def list_options():
    """Filter, sort and search settings for the article list screen"""
    return jsonify({
        'statuses': list(ARTICLE_STATUSES),
        'categories': get_categories(),
        'sortable_fields': list(SORTABLE_FIELDS),
        'default_sort': normalize_sort(),
        'search_debounce_ms': int(get_config_value('SEARCH_DEBOUNCE_MS', 300)),
    })


@news_bp.route('/api/articles/<article_id>', methods=['GET'])
@login_required
def get_article(article_id):
    """Get single article"""
    result = get_article_db(get_supabase(), article_id)
    if result['error']:
        return _upstream_error(result, 'Failed to fetch article')
    if not result['data']:
        return jsonify({'error': 'Article not found'}), 404
    return jsonify(result['data'])


@news_bp.route('/api/articles', methods=['POST'])
@login_required
def create_article():
    """Create new article (JSON, or multipart with image/video files)"""
    data = request.get_json(silent=True) or request.form.to_dict()

    error = validate_article_form(data)
    if error:
        return jsonify({'error': error}), 400

    media, media_error = _collect_media()
    if media_error:
        return jsonify({'error': media_error}), 400

    uploads = []
    for media_type, folder, file_bytes, info in media:
        stored = upload_file(file_bytes, info, folder=folder)
        if not stored['success']:
            _discard_uploads(uploads)
            return _upstream_error(stored, f'Failed to upload {media_type}')
        uploads.append(stored)
        data[f'{media_type}_url'] = stored['url']
        data[f'{media_type}_path'] = stored['path']

    article = article_from_form(data, default_status='pending')
    result = create_article_db(get_supabase(), article, author_id=session['user_id'])
    if result['error']:
        _discard_uploads(uploads)
        return _upstream_error(result, 'Failed to create article')

    created = result['data'][0] if result['data'] else article.to_dict()
    LoggingService.log_user_action('news', 'create article', user_id=session['user_id'],
                                   details={'title': article.title})
    return jsonify({'success': True, 'article': created}), 201


@news_bp.route('/api/articles/<article_id>', methods=['PUT'])
@login_required
def update_article(article_id):
    """Update article fields"""
    data = request.get_json(silent=True) or {}
    fields = {key: data[key] for key in EDITABLE_FIELDS if key in data}

    if not fields:
        return jsonify({'error': 'No fields to update'}), 400

    error = validate_article_form(fields, partial=True)
    if error:
        return jsonify({'error': error}), 400

    result = update_article_db(get_supabase(), article_id, fields)
    if result['error']:
        return _upstream_error(result, 'Failed to update article')

    LoggingService.log_user_action('news', 'update article', user_id=session['user_id'],
                                   details={'article_id': article_id, 'fields': sorted(fields)})
    return jsonify({'success': True, 'message': 'Article updated successfully'})


@news_bp.route('/api/articles/<article_id>', methods=['DELETE'])
@login_required
def delete_article(article_id):
    """Soft delete: the article is flagged 'deleted', never removed"""
    result = soft_delete_article(get_supabase(), article_id)
    if result['error']:
        return _upstream_error(result, 'Failed to delete article')

    LoggingService.log_user_action('news', 'delete article', user_id=session['user_id'],
                                   details={'article_id': article_id})
    return jsonify({'success': True})


@news_bp.route('/api/articles/bulk', methods=['POST'])
@login_required
def bulk_action():
    """Publish, unpublish or delete the selected articles in one batch"""
    data = request.get_json(silent=True) or {}
    ids = data.get('ids') or []
    action = data.get('action')

    if action not in BULK_ACTIONS:
        return jsonify({'error': 'Invalid action'}), 400
    if not isinstance(ids, list):
        return jsonify({'error': 'ids must be a list'}), 400
    if not ids:
        return jsonify({'error': 'No articles selected'}), 400

    result = bulk_update_status(get_supabase(), ids, action)
    if result['error']:
        return _upstream_error(result, 'Failed to perform bulk action')

    LoggingService.log_user_action('news', f'bulk {action}', user_id=session['user_id'],
                                   details={'ids': ids})
    return jsonify({'success': True, 'updated': len(ids), 'status': BULK_ACTIONS[action]})


@news_bp.route('/upload', methods=['POST'])
@login_required
def upload():
    """Upload a single image or video to object storage"""
    file = request.files.get('file')
    if file is None or file.filename == '':
        return jsonify({'success': False, 'error': 'No file provided'}), 400

    folder = request.form.get('folder') or 'news'
    data, info = _file_info(file)

    validation = validate_file(info)
    if not validation['valid']:
        return jsonify({'success': False, 'error': validation['error']}), 400

    result = upload_file(data, info, folder=folder)
    if not result['success']:
        return jsonify(result), 502
    return jsonify(result)
