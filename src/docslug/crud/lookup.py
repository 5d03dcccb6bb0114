"""Document lookup by current or historical slug, and by slug-or-id keys"""

from typing import Any, Callable, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.sql import Select
from sqlmodel import Session, select

from docslug.core.errors import ConfigurationError, NotFoundError
from docslug.core.options import SlugConfig
from docslug.core.state import identity
from docslug.core.trigger import default_type_name
from docslug.core.utils.slug import looks_like_id
from docslug.crud.history import history_owners


ScopeProvider = Callable[[type], Select]


def queryable(model: type, scope_provider: Optional[ScopeProvider] = None) -> Select:
    """Base query for model: the ambient scope from scope_provider, or all rows."""
    return scope_provider(model) if scope_provider is not None else select(model)


def type_names(model: type) -> list[str]:
    """Model type values sharing model's slug namespace: its own and its subclasses'."""
    mapper = sa_inspect(model)
    names = [str(m.polymorphic_identity) for m in mapper.self_and_descendants if m.polymorphic_identity is not None]
    if mapper.polymorphic_identity is None:
        names.insert(0, default_type_name(model))
    return names


def _partitioned(stmt: Select, model: type, config: SlugConfig) -> Select:
    if config.by_model_type:
        stmt = stmt.where(getattr(model, config.type_field).in_(type_names(model)))
    return stmt


def _pk_attr(model: type):
    mapper = sa_inspect(model)
    if len(mapper.primary_key) != 1:
        raise ConfigurationError(f"{model.__name__} has a composite primary key; id and history lookup need a single key")
    return getattr(model, mapper.get_property_by_column(mapper.primary_key[0]).key)


def looks_like_slugs(keys: list[Any]) -> bool:
    """True unless every key parses as a primary key value."""
    return not all(looks_like_id(k) for k in keys)


def _match(
    session: Session,
    model: type,
    config: SlugConfig,
    tokens: list[str],
    scope_provider: Optional[ScopeProvider],
    ) -> tuple[list, set[str]]:
    """Return (documents, matched lowercase tokens), each document once, in token order."""
    lowered = [t.lower() for t in tokens]
    base = _partitioned(queryable(model, scope_provider), model, config)

    by_token: dict[str, list] = {t: [] for t in lowered}
    for doc in session.exec(base.where(model.slug_lower.in_(lowered))).all():
        by_token[doc.slug_lower].append(doc)

    if config.history:
        owners = history_owners(session, model.__tablename__, lowered)
        if owners:
            ids = {doc_id for doc_id, _ in owners}
            pk = _pk_attr(model)
            rows = session.exec(base.where(pk.in_(_coerce_ids(pk, ids)))).all()
            docs = {identity(d): d for d in rows}
            for doc_id, slug_lower in owners:
                if doc_id in docs:
                    by_token[slug_lower].append(docs[doc_id])

    results: dict[str, Any] = {}
    matched: set[str] = set()
    for token in lowered:
        for doc in by_token[token]:
            matched.add(token)
            results.setdefault(identity(doc), doc)
    return list(results.values()), matched


def _coerce_ids(pk, ids) -> list:
    """Convert string ids to the primary key's Python type."""
    python_type = pk.type.python_type
    return [i if isinstance(i, python_type) else python_type(i) for i in ids]


def find_by_slug(
    session: Session,
    model: type,
    config: SlugConfig,
    *tokens: str,
    scope_provider: Optional[ScopeProvider] = None,
    ) -> list:
    """Documents whose current slug, or a historical one when history is enabled, equals any token.

    Each matching document appears once even when several tokens match it.
    Unmatched tokens are ignored.
    """
    docs, _ = _match(session, model, config, list(tokens), scope_provider)
    return docs


def find_by_slug_or_fail(
    session: Session,
    model: type,
    config: SlugConfig,
    *tokens: str,
    scope_provider: Optional[ScopeProvider] = None,
    ):
    """Like find_by_slug, but every token must resolve.

    A single token returns the document itself; several tokens return a list.
    Raises NotFoundError naming the unmatched tokens if any token matches
    nothing; the documents that did match are attached as `found`.
    """
    docs, matched = _match(session, model, config, list(tokens), scope_provider)
    missing = [t for t in tokens if t.lower() not in matched]
    if missing or not tokens:
        raise NotFoundError(model, list(tokens), missing, found=docs)
    return docs[0] if len(tokens) == 1 else docs


def find(
    session: Session,
    model: type,
    config: SlugConfig,
    *keys: Any,
    scope_provider: Optional[ScopeProvider] = None,
    ):
    """Look up by primary key when every key looks like one, otherwise by slug.

    Follows the same single/list and NotFoundError contract as find_by_slug_or_fail.
    """
    if looks_like_slugs(list(keys)):
        return find_by_slug_or_fail(session, model, config, *[str(k) for k in keys], scope_provider=scope_provider)

    pk = _pk_attr(model)
    base = _partitioned(queryable(model, scope_provider), model, config)
    wanted = [str(k) for k in _coerce_ids(pk, keys)]
    rows = session.exec(base.where(pk.in_(_coerce_ids(pk, keys)))).all()
    docs = {identity(d): d for d in rows}
    missing = [k for k in wanted if k not in docs]
    if missing or not keys:
        raise NotFoundError(model, wanted, missing, found=list(docs.values()))
    ordered = [docs[k] for k in dict.fromkeys(wanted)]
    return ordered[0] if len(keys) == 1 else ordered
