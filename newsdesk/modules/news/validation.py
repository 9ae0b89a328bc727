"""Form checks for the add/edit article screens."""

from ...core.models import ARTICLE_STATUSES

MIN_TITLE_LENGTH = 10
MIN_CONTENT_LENGTH = 100


def validate_article_form(data, partial=False):
    """Return the first problem with an article payload, or None.

    With partial=True (edits) only the fields present are checked.
    """
    def present(key):
        return not partial or key in data

    title = (data.get('title') or '').strip()
    content = (data.get('content') or '').strip()

    if present('title'):
        if not title:
            return 'Title is required'
        if len(title) < MIN_TITLE_LENGTH:
            return f'Title must be at least {MIN_TITLE_LENGTH} characters long'

    if present('content'):
        if not content:
            return 'Content is required'
        if len(content) < MIN_CONTENT_LENGTH:
            return f'Content must be at least {MIN_CONTENT_LENGTH} characters long'

    if present('category') and not (data.get('category') or '').strip():
        return 'Please select a category'

    if present('summary') and not (data.get('summary') or '').strip():
        return 'Summary is required'

    tags = data.get('tags')
    if tags is not None and not isinstance(tags, (str, list)):
        return 'Tags must be a list or a comma separated string'

    status = data.get('status')
    if status is not None and status not in ARTICLE_STATUSES:
        return f'Invalid status: {status}'

    return None
