"""Lifecycle decisions: when a slug is rebuilt and how a resolved value is applied"""

import logging
from typing import Any, Callable, Optional, Protocol

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm.attributes import set_committed_value

from docslug.core.builder import build_candidate
from docslug.core.errors import ConfigurationError
from docslug.core.options import SlugConfig
from docslug.core.state import committed_value, field_changed, is_new


logger = logging.getLogger(__name__)


class UniquenessResolver(Protocol):
    """Turns a raw candidate into a collision-free slug; "" means nothing to assign."""

    def resolve_unique(
        self,
        candidate: str,
        scope_value: Any,
        type_value: Any,
        reserved_words: frozenset[str],
        max_length: Optional[int],
        ) -> str:
        ...


def scope_key(model: type, config: SlugConfig) -> str | None:
    """Attribute holding the scope value: the scope field itself, or a relationship's foreign key."""
    if config.scope is None:
        return None
    mapper = sa_inspect(model)
    if config.scope in mapper.relationships.keys():
        column = next(iter(mapper.relationships[config.scope].local_columns))
        return mapper.get_property_by_column(column).key
    return config.scope


def scope_value(doc, config: SlugConfig) -> Any:
    """Current scope value of doc; a related object set but not yet flushed counts too."""
    key = scope_key(type(doc), config)
    if key is None:
        return None
    mapper = sa_inspect(type(doc))
    if config.scope in mapper.relationships.keys():
        related = getattr(doc, config.scope)
        if related is not None:
            _, remote = next(iter(mapper.relationships[config.scope].local_remote_pairs))
            return getattr(related, sa_inspect(type(related)).get_property_by_column(remote).key)
    if not hasattr(doc, key):
        raise ConfigurationError(f"{type(doc).__name__} has no slug scope field '{key}'")
    return getattr(doc, key)


def default_type_name(model: type) -> str:
    """Type value for documents whose type field is unset: the polymorphic identity, else the class name."""
    identity = sa_inspect(model).polymorphic_identity
    return model.__name__ if identity is None else str(identity)


def type_value(doc, config: SlugConfig) -> Any:
    """Model type partition of doc; an unset type field counts as default_type_name."""
    if not config.by_model_type:
        return None
    if not hasattr(doc, config.type_field):
        raise ConfigurationError(f"{type(doc).__name__} has no model type field '{config.type_field}'")
    value = getattr(doc, config.type_field)
    return default_type_name(type(doc)) if value is None else value


def restore_slug_fields(doc) -> None:
    """Put slug and slug_lower back to their stored values (None for a new document), unmarked."""
    for name in ("slug", "slug_lower"):
        set_committed_value(doc, name, committed_value(doc, name))


def should_rebuild(doc, config: SlugConfig) -> bool:
    """Decide whether a save must recompute the slug.

    Permanent slugs are built for new documents only. Rebuildable slugs are
    also rebuilt when the slug itself or any source field changed since load.
    """
    if is_new(doc):
        return True
    if config.permanent:
        return False
    return field_changed(doc, "slug") or any(field_changed(doc, f) for f in config.source_fields)


def apply_slug(
    doc,
    config: SlugConfig,
    resolver: UniquenessResolver,
    on_supersede: Optional[Callable[[Any, str], None]] = None,
    ) -> str:
    """Resolve a unique slug for doc and assign slug/slug_lower together.

    Returns the assigned value, or "" when the resolver had nothing to assign,
    in which case the slug fields keep their stored values and an unusable
    edit to them is dropped. An unset type field is filled with the default
    type name first. on_supersede(doc, old) is called with the previously
    persisted slug when history is enabled and the value changes.
    """
    if config.by_model_type and getattr(doc, config.type_field, None) is None:
        setattr(doc, config.type_field, type_value(doc, config))

    candidate = build_candidate(doc, config)
    new_slug = resolver.resolve_unique(
        candidate,
        scope_value(doc, config),
        type_value(doc, config),
        config.reserved_words,
        config.max_length,
    )
    if not new_slug:
        if field_changed(doc, "slug") or field_changed(doc, "slug_lower"):
            restore_slug_fields(doc)
        logger.debug("No slug resolved for %s from candidate %r", type(doc).__name__, candidate)
        return ""

    previous = committed_value(doc, "slug")
    doc.slug = new_slug
    doc.slug_lower = new_slug.lower()
    if config.history and on_supersede is not None and previous and previous != new_slug:
        on_supersede(doc, previous)
    logger.debug("Assigned slug %r to %s", new_slug, type(doc).__name__)
    return new_slug
