from flask import request, session, jsonify

from . import trending_bp
from .headlines import HeadlinesError, fetch_top_headlines, headline_to_article
from ..analytics.aggregation import aggregate_by_category
from ..auth.utils import login_required
from ...core.config import get_config_value
from ...core.logging_service import LoggingService
from ...core.supabase_client import get_supabase, run_query

FEED_CATEGORIES = ['all', 'business', 'technology', 'entertainment', 'sports', 'science', 'health']


@trending_bp.route('/api/categories', methods=['GET'])
@login_required
def categories():
    return jsonify(FEED_CATEGORIES)


@trending_bp.route('/api/headlines', methods=['GET'])
@login_required
def headlines():
    """Current top headlines plus article counts per category"""
    category = request.args.get('category', 'all')
    if category not in FEED_CATEGORIES:
        return jsonify({'error': f'Unknown category: {category}'}), 400

    page_size = request.args.get('page_size', type=int)

    try:
        articles = fetch_top_headlines(category=category, page_size=page_size)
    except HeadlinesError as e:
        return jsonify({'error': str(e) or 'Failed to fetch trending news'}), 502

    category_stats = [
        {'name': pair['category'], 'articles': pair['value']}
        for pair in aggregate_by_category(articles, value='count')
    ]
    return jsonify({'articles': articles, 'category_stats': category_stats})


@trending_bp.route('/api/import', methods=['POST'])
@login_required
def import_article():
    """Save a headline as a draft article"""
    data = request.get_json(silent=True) or {}
    headline = data.get('article') or {}

    if not headline.get('title'):
        return jsonify({'error': 'Headline title is required'}), 400

    row = headline_to_article(headline, data.get('category'))
    row['author'] = session['user_id']

    result = run_query(
        get_supabase().table(get_config_value('ARTICLES_TABLE', 'articles')).insert([row]),
        source='trending',
        description='import headline',
    )
    if result['error']:
        return jsonify({'error': result['error']}), 502

    LoggingService.log_user_action('trending', 'import headline', user_id=session['user_id'],
                                   details={'title': row['title'], 'url': row.get('url')})
    return jsonify({'success': True, 'message': 'Article imported as draft'}), 201
