"""Slug history persistence: record, list and search superseded slugs"""

from typing import Any, Optional

from sqlalchemy import func, insert
from sqlmodel import Session, select

from docslug.core.errors import ConfigurationError
from docslug.core.state import identity
from docslug.crud.models import SlugHistory


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _equals(column, value: Any):
    return column.is_(None) if value is None else column == str(value)


def _next_position(session: Session, table_name: str, document_id: str) -> int:
    pending = [
        h.position for h in session.new
        if isinstance(h, SlugHistory) and h.table_name == table_name and h.document_id == document_id
    ]
    stored = session.exec(
        select(func.max(SlugHistory.position))
        .where(SlugHistory.table_name == table_name)
        .where(SlugHistory.document_id == document_id)
    ).one()
    return max([stored or 0, *pending]) + 1


def record_slug(
    session: Session,
    doc,
    slug: str,
    scope: Any = None,
    doc_type: Any = None,
    immediate: bool = False,
    ) -> SlugHistory:
    """Append slug to doc's history.

    By default the row is added to the session and written with the next flush.
    immediate=True inserts it right away with a single statement, for use
    outside the flush pipeline.
    """
    document_id = identity(doc)
    if document_id is None:
        raise ConfigurationError(f"Cannot record slug history for unsaved {type(doc).__name__} without a primary key")

    entry = SlugHistory(
        table_name=type(doc).__tablename__,
        document_id=document_id,
        slug=slug,
        slug_lower=slug.lower(),
        scope=_str_or_none(scope),
        doc_type=_str_or_none(doc_type),
        position=_next_position(session, type(doc).__tablename__, document_id),
    )
    if immediate:
        session.execute(insert(SlugHistory).values(**entry.model_dump()))
    else:
        session.add(entry)
    return entry


def list_history(session: Session, doc) -> list[str]:
    """Return doc's previous slugs, oldest first."""
    document_id = identity(doc)
    if document_id is None:
        return []
    return list_history_for(session, type(doc).__tablename__, document_id)


def list_history_for(session: Session, table_name: str, document_id: str) -> list[str]:
    return list(
        session.exec(
            select(SlugHistory.slug)
            .where(SlugHistory.table_name == table_name)
            .where(SlugHistory.document_id == document_id)
            .order_by(SlugHistory.position.asc())
        ).all()
    )


def history_owners(session: Session, table_name: str, tokens: list[str]) -> list[tuple[str, str]]:
    """Return (document_id, slug_lower) pairs for history rows matching any token."""
    lowered = {t.lower() for t in tokens}
    if not lowered:
        return []
    rows = session.exec(
        select(SlugHistory.document_id, SlugHistory.slug_lower)
        .where(SlugHistory.table_name == table_name)
        .where(SlugHistory.slug_lower.in_(lowered))
    ).all()
    return [(document_id, slug_lower) for document_id, slug_lower in rows]


def historical_slugs_like(
    session: Session,
    table_name: str,
    stem: str,
    scope: Any = None,
    doc_type: Any = None,
    exclude_id: Optional[str] = None,
    scoped: bool = False,
    typed: bool = False,
    ) -> set[str]:
    """Historical slug_lower values starting with stem, held by other documents."""
    stmt = (
        select(SlugHistory.slug_lower)
        .where(SlugHistory.table_name == table_name)
        .where(SlugHistory.slug_lower.startswith(stem, autoescape=True))
    )
    if scoped:
        stmt = stmt.where(_equals(SlugHistory.scope, scope))
    if typed:
        stmt = stmt.where(_equals(SlugHistory.doc_type, doc_type))
    if exclude_id is not None:
        stmt = stmt.where(SlugHistory.document_id != exclude_id)
    return set(session.exec(stmt).all())
