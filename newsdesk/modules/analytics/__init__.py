"""
Analytics Module
================

Charts data and the downloadable news report:
- user, article and page view summaries over a 7/30/90 day window
- category totals, per-day trends, top articles and engagement metrics
"""

from flask import Blueprint

analytics_bp = Blueprint(
    'analytics',
    __name__,
    url_prefix='/admin/analytics'
)

from . import routes

__all__ = ['analytics_bp']
