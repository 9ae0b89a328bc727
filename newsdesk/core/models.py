"""
Row models for the hosted tables.

Rows come back from the data store as loose dicts; these dataclasses pin
down which fields exist and give every optional one an explicit default.
"""

from dataclasses import dataclass, field, asdict, fields
from typing import List, Optional

ARTICLE_STATUSES = ('draft', 'pending', 'published', 'deleted')

ARTICLE_CATEGORIES = (
    'business',
    'entertainment',
    'general',
    'health',
    'science',
    'sports',
    'technology',
)


def _as_int(value):
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def as_tags(value):
    """Tags as a clean list, from a list or a comma separated string"""
    if not value:
        return []
    if isinstance(value, str):
        return parse_tags(value)
    return [str(tag).strip() for tag in value if str(tag).strip()]


def parse_tags(raw):
    """Split a comma separated tag string into a clean list"""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(',') if tag.strip()]


def _known(cls, row):
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (row or {}).items() if k in names}


@dataclass
class Article:
    id: Optional[str] = None
    title: str = ''
    content: str = ''
    summary: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    video_url: Optional[str] = None
    video_path: Optional[str] = None
    mobile_preview_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    status: str = 'draft'
    views: int = 0
    author: Optional[str] = None
    source: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    published_at: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        data = _known(cls, row)
        data['title'] = data.get('title') or ''
        data['content'] = data.get('content') or ''
        data['status'] = data.get('status') or 'draft'
        data['views'] = _as_int(data.get('views'))
        data['tags'] = as_tags(data.get('tags'))
        article = cls(**data)
        # Nested author profile from the joined select
        author = (row or {}).get('author')
        if isinstance(author, dict):
            article.author = author.get('id')
        return article

    def to_dict(self):
        return asdict(self)

    def to_insert_payload(self):
        """Non-empty fields for an insert; id and timestamps belong to the store."""
        payload = {}
        for key, value in asdict(self).items():
            if key in ('id', 'created_at', 'updated_at'):
                continue
            if value is None or value == '':
                continue
            payload[key] = value
        return payload


@dataclass
class UserProfile:
    id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = 'user'
    avatar_url: Optional[str] = None
    title: Optional[str] = None
    bio: Optional[str] = None
    last_login: Optional[str] = None
    created_at: Optional[str] = None
    email_notifications: bool = True
    news_alerts: bool = True
    activity_summary: bool = False

    @classmethod
    def from_row(cls, row):
        data = _known(cls, row)
        data['role'] = data.get('role') or 'user'
        for flag, default in (('email_notifications', True),
                              ('news_alerts', True),
                              ('activity_summary', False)):
            if data.get(flag) is None:
                data[flag] = default
        return cls(**data)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        return asdict(self)


@dataclass
class PageView:
    created_at: Optional[str] = None
    user_id: Optional[str] = None
    article_id: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return cls(**_known(cls, row))
