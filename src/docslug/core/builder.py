"""Slug candidate construction from source fields or a custom builder"""

from docslug.core.errors import ConfigurationError
from docslug.core.options import SlugConfig
from docslug.core.state import field_changed, is_new, is_persisted


def _user_slug(doc) -> str | None:
    """Return a slug the caller set explicitly, if it should win over derived fields."""
    slug = getattr(doc, "slug", None)
    if is_new(doc) and slug:
        return slug
    if is_persisted(doc) and field_changed(doc, "slug"):
        return slug or None
    return None


def pre_slug_string(doc, config: SlugConfig) -> str:
    """Join the current values of the source fields with single spaces."""
    parts = []
    for name in config.source_fields:
        try:
            value = getattr(doc, name)
        except AttributeError as e:
            raise ConfigurationError(
                f"{type(doc).__name__} has no slug source field '{name}'"
            ) from e
        parts.append("" if value is None else str(value))
    return " ".join(parts)


def build_candidate(doc, config: SlugConfig) -> str:
    """Return the raw, not yet unique, slug candidate for doc. Performs no writes.

    A slug supplied on a new document, or modified on a persisted one, is kept
    as the candidate. Otherwise the custom builder is called if configured, and
    failing that the source fields are concatenated in declared order.
    """
    user = _user_slug(doc)
    if user is not None:
        return user
    if config.custom_builder is not None:
        return config.custom_builder(doc) or ""
    return pre_slug_string(doc, config)
