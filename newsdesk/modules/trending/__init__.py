"""
Trending Module
===============

Top headlines from the third-party feed, with per-category counts and a
one-click import of a headline as a draft article.
"""

from flask import Blueprint

trending_bp = Blueprint(
    'trending',
    __name__,
    url_prefix='/admin/trending'
)

from . import routes

__all__ = ['trending_bp']
