"""
Newsdesk Modules
================

Flask blueprint modules for the news admin.
"""

__all__ = ['analytics', 'auth', 'dashboard', 'news', 'ops', 'profile', 'trending']
