"""
News Admin Module
=================

Admin API for news article management.

Provides:
- Filtered, sorted article listing
- Article creation and editing with form validation
- Soft delete and bulk publish/unpublish/delete
- Image and video upload for articles
"""

from flask import Blueprint

news_bp = Blueprint(
    'news_admin',
    __name__,
    url_prefix='/admin/news'
)

from . import routes

__all__ = ['news_bp']
