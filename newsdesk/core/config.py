import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _split_list(value, default):
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """
    Base configuration for the Newsdesk admin.
    Deployments provide credentials via environment variables (or a .env file).
    """
    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY')
    ENVIRONMENT = os.getenv('ENVIRONMENT', os.getenv('FLASK_ENV', 'development'))

    APP_NAME = os.getenv('APP_NAME', 'News Admin Panel')
    APP_DESCRIPTION = os.getenv('APP_DESCRIPTION', '')
    APP_URL = os.getenv('APP_URL', 'http://localhost:5000')
    CORS_ORIGINS = _split_list(os.getenv('CORS_ORIGINS'), [])

    # Supabase (auth, tables, object storage)
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY') or os.getenv('SUPABASE_ANON_KEY')

    # Headlines feed (newsapi.org)
    NEWS_API_KEY = os.getenv('NEWS_API_KEY')
    NEWS_API_BASE_URL = os.getenv('NEWS_API_BASE_URL', 'https://newsapi.org/v2')
    NEWS_API_TIMEOUT = int(os.getenv('NEWS_API_TIMEOUT', '30000'))  # milliseconds
    NEWS_API_RETRY_ATTEMPTS = int(os.getenv('NEWS_API_RETRY_ATTEMPTS', '3'))
    NEWS_API_COUNTRY = os.getenv('NEWS_API_COUNTRY', 'us')

    # Upload limits
    MAX_IMAGE_SIZE = int(os.getenv('MAX_IMAGE_SIZE', str(5 * 1024 * 1024)))
    ALLOWED_IMAGE_TYPES = _split_list(
        os.getenv('ALLOWED_IMAGE_TYPES'),
        ['image/jpeg', 'image/png', 'image/webp']
    )
    MAX_VIDEO_SIZE = int(os.getenv('MAX_VIDEO_SIZE', str(50 * 1024 * 1024)))
    ALLOWED_VIDEO_TYPES = _split_list(
        os.getenv('ALLOWED_VIDEO_TYPES'),
        ['video/mp4', 'video/webm']
    )

    # Storage buckets
    IMAGE_BUCKET = os.getenv('IMAGE_BUCKET', 'news-images')
    VIDEO_BUCKET = os.getenv('VIDEO_BUCKET', 'news-videos')
    UPLOAD_CACHE_CONTROL = os.getenv('UPLOAD_CACHE_CONTROL', '3600')

    # Defaults
    DEFAULT_PAGINATION_LIMIT = int(os.getenv('DEFAULT_PAGINATION_LIMIT', '10'))
    DEFAULT_CATEGORY = os.getenv('DEFAULT_CATEGORY', 'general')
    CACHE_DURATION = int(os.getenv('CACHE_DURATION', '3600'))
    SEARCH_DEBOUNCE_MS = int(os.getenv('SEARCH_DEBOUNCE_MS', '300'))
    # Bursts of gateway auth events settle into one role lookup
    AUTH_EVENT_DEBOUNCE_MS = int(os.getenv('AUTH_EVENT_DEBOUNCE_MS', '300'))

    # Local log database
    DB_DIR = os.getenv('DB_DIR', os.path.join(os.getcwd(), 'databases'))
    LOG_DB = os.getenv('LOG_DB', os.path.join(DB_DIR, 'app_logs.db'))

    # Table names
    ARTICLES_TABLE = 'articles'
    USERS_TABLE = 'users'
    PAGE_VIEWS_TABLE = 'page_views'

    # Required for a working install; checked at startup outside production
    REQUIRED_ENV_VARS = ['SUPABASE_URL', 'SUPABASE_KEY', 'NEWS_API_KEY']

    port = int(os.getenv('PORT', '5000'))


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None and val != '':
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None and val != '':
        return val
    return os.getenv(key, default)


def is_production():
    """Check if running in production"""
    return str(get_config_value('ENVIRONMENT', 'development')).lower() == 'production'


def validate_env_vars(required=None):
    """Raise RuntimeError listing every required setting that is missing."""
    required = required or Config.REQUIRED_ENV_VARS
    missing = [key for key in required if not get_config_value(key)]
    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
    return True
