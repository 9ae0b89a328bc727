"""
Dashboard Module
================

Landing dashboard for the admin: article, user and view totals, a 7-day
views trend, recent articles and trending headlines.
"""

from flask import Blueprint

dashboard_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin'
)

from . import routes

__all__ = ['dashboard_bp']
