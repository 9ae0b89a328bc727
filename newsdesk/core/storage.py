"""
Storage Utility
===============

File validation and upload into Supabase object storage buckets.
Images land in the image bucket, everything else in the video bucket.
"""

import re
import time

from .config import get_config_value
from .logging_service import LoggingService
from .supabase_client import get_supabase, error_message

MB = 1024 * 1024


def _default_limits(content_type):
    """Size/type limits for the media family of a MIME type."""
    if (content_type or '').startswith('image/'):
        return {
            'max_size': int(get_config_value('MAX_IMAGE_SIZE', 5 * MB)),
            'allowed_types': list(get_config_value('ALLOWED_IMAGE_TYPES', [])),
        }
    return {
        'max_size': int(get_config_value('MAX_VIDEO_SIZE', 50 * MB)),
        'allowed_types': list(get_config_value('ALLOWED_VIDEO_TYPES', [])),
    }


def _format_size(num_bytes):
    mb = num_bytes / MB
    return f"{mb:g}MB" if mb >= 1 else f"{num_bytes} bytes"


def validate_file(file_info, options=None):
    """Gate an upload on declared type and size.

    Args:
        file_info: dict with content_type, size and filename (or None).
        options: optional {max_size, allowed_types}; defaults come from
            config for the file's media family.

    Returns:
        {'valid': True} or {'valid': False, 'error': message}
    """
    if not file_info:
        return {'valid': False, 'error': 'No file provided'}

    content_type = file_info.get('content_type') or ''
    size = file_info.get('size') or 0

    limits = _default_limits(content_type)
    if options:
        limits.update({k: v for k, v in options.items() if v is not None})

    allowed_types = list(limits['allowed_types'])
    max_size = int(limits['max_size'])

    if content_type not in allowed_types:
        return {
            'valid': False,
            'error': f"File type not allowed. Allowed types: {', '.join(allowed_types)}"
        }

    if size > max_size:
        return {
            'valid': False,
            'error': f"File too large. Maximum size: {_format_size(max_size)}"
        }

    return {'valid': True}


def build_object_key(filename, folder='news', timestamp_ms=None):
    """Collision-resistant object key: <folder>/<safe-name>-<ms>.<ext>"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    base, _, ext = (filename or 'file').rpartition('.')
    if not base:
        # No extension present
        base, ext = ext, ''

    clean_name = re.sub(r'[^a-z0-9]', '-', base.lower()) or 'file'
    name = f"{clean_name}-{timestamp_ms}"
    if ext:
        name = f"{name}.{ext}"

    folder = (folder or '').strip('/')
    return f"{folder}/{name}" if folder else name


def bucket_for(content_type):
    """Pick the storage bucket for a MIME type."""
    if (content_type or '').startswith('image/'):
        return get_config_value('IMAGE_BUCKET', 'news-images')
    return get_config_value('VIDEO_BUCKET', 'news-videos')


def upload_file(file_bytes, file_info, folder='news', client=None):
    """Upload a validated file to object storage.

    Never raises: failures come back as a structured result so callers can
    show a message.

    Returns:
        {'success': True, 'url', 'path', 'bucket'} or
        {'success': False, 'error': message}
    """
    if file_bytes is None or not file_info:
        return {'success': False, 'error': 'No file provided'}

    try:
        client = client or get_supabase()
        content_type = file_info.get('content_type') or 'application/octet-stream'
        bucket = bucket_for(content_type)
        path = build_object_key(file_info.get('filename'), folder)

        client.storage.from_(bucket).upload(
            path=path,
            file=file_bytes,
            file_options={
                'cache-control': str(get_config_value('UPLOAD_CACHE_CONTROL', '3600')),
                'content-type': content_type,
                'upsert': 'false',
            },
        )

        url = get_public_url(bucket, path, client=client)

        LoggingService.info('storage', f"Uploaded {path} to {bucket}")
        return {'success': True, 'url': url, 'path': path, 'bucket': bucket}

    except Exception as e:
        message = error_message(e, 'Error uploading file')
        LoggingService.warning('storage', 'Upload failed', {
            'filename': file_info.get('filename'),
            'error': message,
        })
        return {'success': False, 'error': message}


def get_public_url(bucket, path, client=None):
    """Public URL for an object path."""
    client = client or get_supabase()
    url = client.storage.from_(bucket).get_public_url(path)
    # Older clients wrap the URL in a dict
    if isinstance(url, dict):
        url = url.get('publicUrl') or url.get('publicURL')
    return url


def delete_file(bucket, paths, client=None):
    """Remove one or more objects by path.

    Returns True on success, raises on failure.
    """
    if not paths:
        return False
    if isinstance(paths, str):
        paths = [paths]

    client = client or get_supabase()
    client.storage.from_(bucket).remove(list(paths))
    LoggingService.info('storage', f"Removed {len(paths)} object(s) from {bucket}")
    return True


def list_buckets(client=None):
    """Names of all storage buckets."""
    client = client or get_supabase()
    buckets = client.storage.list_buckets() or []
    names = []
    for bucket in buckets:
        name = getattr(bucket, 'name', None)
        if name is None and isinstance(bucket, dict):
            name = bucket.get('name')
        if name:
            names.append(name)
    return names


def check_bucket_exists(bucket_name, client=None):
    """Check a bucket exists; lookup failures count as missing."""
    try:
        return bucket_name in list_buckets(client=client)
    except Exception as e:
        LoggingService.error('storage', f"Error checking bucket {bucket_name}: {e}")
        return False


def ensure_required_buckets(client=None):
    """Check the image and video buckets exist.

    Returns:
        (all_present, [{'bucket', 'exists'}, ...])
    """
    required = [
        get_config_value('IMAGE_BUCKET', 'news-images'),
        get_config_value('VIDEO_BUCKET', 'news-videos'),
    ]
    results = []
    for bucket in required:
        exists = check_bucket_exists(bucket, client=client)
        if not exists:
            LoggingService.error('storage', f'Required bucket "{bucket}" does not exist!')
        results.append({'bucket': bucket, 'exists': exists})

    return all(r['exists'] for r in results), results
