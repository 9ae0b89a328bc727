"""
Newsdesk Core
=============

Core utilities and shared functionality for Newsdesk modules.
"""

from .config import Config, get_config_value, validate_env_vars, is_production
from .database import Database
from .logging_service import LoggingService, logger
from .supabase_client import get_supabase, run_query

__all__ = [
    'Config', 'get_config_value', 'validate_env_vars', 'is_production',
    'Database', 'LoggingService', 'logger', 'get_supabase', 'run_query',
]
