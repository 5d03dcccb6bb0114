"""Slug persistence: save-path rebuilds and atomic set/unset/revert of the slug fields"""

import logging
from functools import partial
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import Session

from docslug.core.errors import PersistenceError
from docslug.core.options import SlugConfig
from docslug.core.state import committed_value, identity, is_new, pk_clause
from docslug.core.trigger import (
    UniquenessResolver, apply_slug, restore_slug_fields, scope_value, should_rebuild, type_value,
)
from docslug.crud.history import record_slug
from docslug.crud.unique import StoreResolver


logger = logging.getLogger(__name__)


def _supersede(session: Session, config: SlugConfig, doc, old_slug: str, immediate: bool = False) -> None:
    record_slug(
        session, doc, old_slug,
        scope=scope_value(doc, config),
        doc_type=type_value(doc, config),
        immediate=immediate,
    )


def _write_slug_fields(session: Session, doc, slug: Optional[str]) -> None:
    """Single-row UPDATE of slug and slug_lower, then mark the in-memory values committed."""
    slug_lower = slug.lower() if slug else None
    stmt = (
        update(type(doc))
        .where(pk_clause(doc))
        .values(slug=slug, slug_lower=slug_lower)
        .execution_options(synchronize_session=False)
    )
    try:
        result = session.execute(stmt)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to write slug for {type(doc).__name__} {identity(doc)}: {e}") from e
    if result.rowcount == 0:
        raise PersistenceError(f"{type(doc).__name__} {identity(doc)} is not stored; nothing to update")
    set_committed_value(doc, "slug", slug)
    set_committed_value(doc, "slug_lower", slug_lower)


def build_slug(
    session: Session,
    doc,
    config: SlugConfig,
    resolver: Optional[UniquenessResolver] = None,
    ) -> str:
    """Recompute doc's slug in memory. The value is written by the next flush.

    Returns the resolved slug, or "" if nothing was assigned.
    """
    resolver = resolver or StoreResolver(session, doc, config)
    return apply_slug(doc, config, resolver, on_supersede=partial(_supersede, session, config))


def set_slug_now(
    session: Session,
    doc,
    config: SlugConfig,
    resolver: Optional[UniquenessResolver] = None,
    ) -> Optional[str]:
    """Rebuild doc's slug and write it to its stored row immediately.

    Only the slug fields (and a history entry when enabled) are written; other
    pending changes on doc stay pending. Executes inside the session's current
    transaction, so the caller still commits. Raises PersistenceError if doc
    has never been stored or the update fails.
    """
    if is_new(doc):
        raise PersistenceError(f"Cannot set slug on unsaved {type(doc).__name__}; save it first")

    with session.no_autoflush:
        previous = committed_value(doc, "slug")
        resolver = resolver or StoreResolver(session, doc, config)
        apply_slug(doc, config, resolver)
        _write_slug_fields(session, doc, doc.slug)
        if config.history and previous and previous != doc.slug:
            try:
                _supersede(session, config, doc, previous, immediate=True)
            except SQLAlchemyError as e:
                raise PersistenceError(f"Failed to record slug history for {identity(doc)}: {e}") from e
    logger.debug("Set slug %r on %s %s", doc.slug, type(doc).__name__, identity(doc))
    return doc.slug


def unset_slug(session: Session, doc) -> None:
    """Remove the slug from doc's stored row and reset the in-memory value.

    The stored fields become NULL so an index over slug_lower holds no entry for
    the document.
    """
    if is_new(doc):
        clear_slug(doc)
        return
    with session.no_autoflush:
        _write_slug_fields(session, doc, None)
    logger.debug("Unset slug on %s %s", type(doc).__name__, identity(doc))


def revert_slug(doc) -> None:
    """Discard unflushed changes to doc's slug fields, restoring the stored values."""
    restore_slug_fields(doc)


def clear_slug(doc) -> None:
    """Reset the in-memory slug to its default. The next save rebuilds it."""
    doc.slug = None
    doc.slug_lower = None


def to_param(doc) -> Optional[str]:
    """URL token for doc: its slug when present, otherwise its primary key."""
    return doc.slug or identity(doc)


def rebuild_on_flush(session: Session, registry, resolver_factory=StoreResolver) -> None:
    """Rebuild slugs for every new or changed slugged document about to be flushed."""
    claims: dict = {}
    pending = [d for d in list(session.new) + list(session.dirty) if d not in session.deleted]
    for doc in pending:
        config = registry.get(type(doc))
        if config is None:
            continue
        if not should_rebuild(doc, config):
            logger.debug("Slug unchanged for %s %s", type(doc).__name__, identity(doc))
            continue
        resolver = resolver_factory(session, doc, config, claims)
        apply_slug(doc, config, resolver, on_supersede=partial(_supersede, session, config))
