"""Read-only views of a mapped document's persistence state and change tracking"""

from sqlalchemy import and_, inspect as sa_inspect, select


def is_new(doc) -> bool:
    """True for documents that have never been flushed (transient or pending)."""
    state = sa_inspect(doc)
    return state.transient or state.pending


def is_persisted(doc) -> bool:
    state = sa_inspect(doc)
    return state.persistent or (state.detached and state.key is not None)


def field_changed(doc, name: str) -> bool:
    """True if the mapped attribute `name` holds an unflushed change.

    Names that are not mapped attributes (plain properties) never report changes.
    """
    attrs = sa_inspect(doc).attrs
    if name not in attrs.keys():
        return False
    return attrs[name].history.has_changes()


def identity(doc) -> str | None:
    """Primary key of a document as a string, or None before it has one."""
    mapper = sa_inspect(type(doc))
    values = [getattr(doc, col.key, None) for col in mapper.primary_key]
    if any(v is None for v in values):
        return None
    return ":".join(str(v) for v in values)


def pk_clause(doc):
    """WHERE clause selecting doc's own row."""
    model = type(doc)
    mapper = sa_inspect(model)
    keys = [mapper.get_property_by_column(col).key for col in mapper.primary_key]
    return and_(*[getattr(model, k) == getattr(doc, k) for k in keys])


def committed_value(doc, name: str):
    """Last persisted value of a mapped attribute, ignoring pending changes.

    An attribute assigned while expired has no loaded original, so the stored
    value is read back from the database.
    """
    state = sa_inspect(doc)
    if name not in state.dict:
        getattr(doc, name)
    history = state.attrs[name].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    if history.added and state.key is not None and state.session is not None:
        with state.session.no_autoflush:
            return state.session.execute(
                select(getattr(type(doc), name)).where(pk_clause(doc))
            ).scalar_one_or_none()
    return None
