"""
Application log store for the Newsdesk admin.

Every entry is a row in a local SQLite ``app_logs`` table (path from the
LOG_DB setting), stamped with the request it happened in. When the store
cannot be written the entry goes to stdout instead, so logging never
breaks a request.
"""

import json
import traceback
from datetime import datetime, timedelta

from flask import request, has_request_context

from .config import get_config_value
from .database import Database

LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS app_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        level TEXT NOT NULL,
        source TEXT NOT NULL,
        message TEXT NOT NULL,
        details TEXT,
        ip_address TEXT,
        user_agent TEXT,
        request_method TEXT,
        request_path TEXT,
        user_id TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_app_logs_timestamp ON app_logs(timestamp DESC)",
    "CREATE INDEX IF NOT EXISTS idx_app_logs_level ON app_logs(level)",
)

RECENT_COLUMNS = ('timestamp', 'level', 'source', 'message', 'details', 'request_path', 'user_id')


class LoggingService:
    """Static helpers that write structured entries to the log store"""

    # Log databases whose schema has been created in this process
    _ready = set()

    @staticmethod
    def _log_db():
        return get_config_value('LOG_DB')

    @staticmethod
    def _connect():
        path = LoggingService._log_db()
        conn = Database.connect(path)
        if path not in LoggingService._ready:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()
            LoggingService._ready.add(path)
        return conn

    @staticmethod
    def _request_info():
        """Client address, user agent, method and path of the current request."""
        if not has_request_context():
            return {}
        forwarded = request.headers.get('X-Forwarded-For', '')
        return {
            'ip_address': forwarded.split(',')[0].strip() or request.remote_addr,
            'user_agent': request.headers.get('User-Agent', ''),
            'request_method': request.method,
            'request_path': request.path,
        }

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Write one entry.

        Args:
            level (str): one of LEVELS
            source (str): area of the app (auth, news, analytics, storage, ...)
            message (str): short human readable summary
            details (dict/list/str): extra context, stored as JSON
            user_id (str): acting user, when known
        """
        level = str(level).upper()
        if isinstance(details, (dict, list)):
            details = json.dumps(details, default=str)
        context = LoggingService._request_info()
        timestamp = datetime.now().isoformat()

        try:
            with LoggingService._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details,
                     ip_address, user_agent, request_method, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        timestamp, level, source, message, details,
                        context.get('ip_address'), context.get('user_agent'),
                        context.get('request_method'), context.get('request_path'),
                        str(user_id) if user_id is not None else None,
                    ),
                )
        except Exception as e:
            print(f"[{timestamp}] [{level}] [{source}] {message}")
            if details:
                print(f"  details: {details}")
            print(f"  (log store unavailable: {e})")

    @staticmethod
    def debug(source, message, details=None, user_id=None):
        LoggingService.log('DEBUG', source, message, details, user_id)

    @staticmethod
    def info(source, message, details=None, user_id=None):
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def warning(source, message, details=None, user_id=None):
        LoggingService.log('WARNING', source, message, details, user_id)

    @staticmethod
    def error(source, message, details=None, user_id=None):
        LoggingService.log('ERROR', source, message, details, user_id)

    @staticmethod
    def critical(source, message, details=None, user_id=None):
        LoggingService.log('CRITICAL', source, message, details, user_id)

    @staticmethod
    def log_user_action(source, action, user_id=None, details=None):
        """Audit trail entry: sign-ins, article edits, imports"""
        LoggingService.info(source, f"User action: {action}", details, user_id)

    @staticmethod
    def log_api_call(source, endpoint, method='GET', status_code=200, details=None):
        """Upstream call outcome; 4xx is a warning and 5xx an error"""
        if status_code >= 500:
            level = 'ERROR'
        elif status_code >= 400:
            level = 'WARNING'
        else:
            level = 'INFO'
        LoggingService.log(level, source, f"{method} {endpoint} -> {status_code}", details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        payload = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc(),
        }
        if details:
            payload['context'] = details
        LoggingService.error(source, f"Unhandled {type(error).__name__}", payload)

    @staticmethod
    def log_security_event(message, details=None):
        """Failed sign-ins and role denials"""
        LoggingService.warning('security', message, details)

    @staticmethod
    def get_recent_logs(limit=50, level=None):
        """Newest entries first, optionally for a single level"""
        query = f"SELECT {', '.join(RECENT_COLUMNS)} FROM app_logs"
        params = []
        if level:
            query += " WHERE level = ?"
            params.append(level.upper())
        query += " ORDER BY id DESC LIMIT ?"
        params.append(int(limit))

        try:
            with LoggingService._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except Exception as e:
            print(f"Could not read log store: {e}")
            return []
        return [dict(zip(RECENT_COLUMNS, row)) for row in rows]

    @staticmethod
    def cleanup_old_logs(days_to_keep=30):
        """Delete entries older than days_to_keep; returns how many went"""
        cutoff = (datetime.now() - timedelta(days=days_to_keep)).isoformat()
        try:
            with LoggingService._connect() as conn:
                deleted = conn.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff,)).rowcount
        except Exception as e:
            LoggingService.error('system', f"Log cleanup failed: {e}")
            return 0

        LoggingService.info('system', f"Removed {deleted} log entries older than {days_to_keep} days")
        return deleted


# Convenience instance for easy importing
logger = LoggingService()
