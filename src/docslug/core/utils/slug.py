"""Slug transliteration for document identifiers"""

from uuid import UUID

from slugify import slugify as python_slugify


def to_url(text: str | None, max_length: int = 0) -> str:
    """Transliterate text to a lowercase, hyphen-separated URL-safe slug.

    max_length=0 leaves the result untruncated.
    """
    if not text:
        return ""
    return python_slugify(str(text), max_length=max_length)


def looks_like_id(value: str) -> bool:
    """True if value parses as a UUID primary key rather than a slug."""
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True
