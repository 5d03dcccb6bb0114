"""Store-backed uniqueness resolution for slug candidates"""

import logging
import re
from typing import Any, Optional

from sqlalchemy import inspect as sa_inspect, or_
from sqlmodel import Session, select

from docslug.core.errors import ResolutionFailure
from docslug.core.options import SlugConfig
from docslug.core.state import identity
from docslug.core.trigger import scope_key
from docslug.core.utils.slug import looks_like_id, to_url
from docslug.crud.history import historical_slugs_like


logger = logging.getLogger(__name__)

Claims = dict[tuple[str, Optional[str], Optional[str]], set[str]]


def _claim_key(model: type, scope: Any, doc_type: Any) -> tuple[str, Optional[str], Optional[str]]:
    return (
        model.__tablename__,
        None if scope is None else str(scope),
        None if doc_type is None else str(doc_type),
    )


def _highest_suffix(stem: str, taken: set[str]) -> int:
    """Largest N among taken values of the form stem or stem-N; bare stem counts as 0, none as -1."""
    pattern = re.compile(rf"^{re.escape(stem)}(?:-(\d+))?$")
    highest = -1
    for value in taken:
        m = pattern.match(value)
        if m:
            highest = max(highest, int(m.group(1) or 0))
    return highest


class StoreResolver:
    """Resolve a collision-free slug for one document against the database.

    Candidates are transliterated, truncated to max_length, and suffixed with
    -1, -2, ... past the highest suffix already in use in the same scope and
    model type. Slugs held by other documents, currently or in their history,
    reserved words, and values that look like primary keys are all taken.
    Values handed out earlier in the same flush are recorded in `claims` so two
    pending documents never receive the same slug.
    """

    def __init__(self, session: Session, doc, config: SlugConfig, claims: Optional[Claims] = None):
        self.session = session
        self.doc = doc
        self.model = type(doc)
        self.config = config
        self.claims = claims if claims is not None else {}

    def _exclude_self(self, stmt):
        mapper = sa_inspect(self.model)
        values = [getattr(self.doc, col.key, None) for col in mapper.primary_key]
        if any(v is None for v in values):
            return stmt
        columns = [getattr(self.model, mapper.get_property_by_column(col).key) for col in mapper.primary_key]
        return stmt.where(or_(*[c != v for c, v in zip(columns, values)]))

    def _taken(self, stem: str, scope: Any, doc_type: Any) -> set[str]:
        """All slug_lower values starting with stem that this document may not use."""
        model = self.model
        stmt = select(model.slug_lower).where(model.slug_lower.startswith(stem, autoescape=True))
        key = scope_key(model, self.config)
        if key is not None:
            column = getattr(model, key)
            stmt = stmt.where(column.is_(None) if scope is None else column == scope)
        if self.config.by_model_type:
            column = getattr(model, self.config.type_field)
            stmt = stmt.where(column.is_(None) if doc_type is None else column == doc_type)
        stmt = self._exclude_self(stmt)

        with self.session.no_autoflush:
            taken = set(self.session.exec(stmt).all())
            taken |= historical_slugs_like(
                self.session, model.__tablename__, stem,
                scope=scope, doc_type=doc_type, exclude_id=identity(self.doc),
                scoped=key is not None, typed=self.config.by_model_type,
            )
        taken |= {s for s in self.claims.get(_claim_key(model, scope, doc_type), set()) if s.startswith(stem)}
        taken.discard(None)
        return taken

    def _available(self, value: str, taken: set[str], reserved: set[str]) -> bool:
        return value not in taken and value not in reserved and not looks_like_id(value)

    def resolve_unique(
        self,
        candidate: str,
        scope_value: Any,
        type_value: Any,
        reserved_words: frozenset[str],
        max_length: Optional[int],
        ) -> str:
        """Return a unique slug for candidate, or "" if it transliterates to nothing."""
        base = to_url(candidate, max_length=max_length or 0)
        if not base:
            return ""

        reserved = {w.lower() for w in reserved_words}
        taken = self._taken(base, scope_value, type_value)
        if self._available(base, taken, reserved):
            return self._claim(base, scope_value, type_value)

        n = max(_highest_suffix(base, taken), 0) + 1
        stem = base
        while True:
            suffix = f"-{n}"
            if max_length is not None and len(stem) + len(suffix) > max_length:
                stem = base[: max_length - len(suffix)].rstrip("-")
                if not stem:
                    raise ResolutionFailure(
                        f"No unique slug for {candidate!r} fits within {max_length} characters"
                    )
                taken = self._taken(stem, scope_value, type_value)
                n = max(n, _highest_suffix(stem, taken) + 1)
                suffix = f"-{n}"
            value = f"{stem}{suffix}"
            if self._available(value, taken, reserved):
                return self._claim(value, scope_value, type_value)
            n += 1

    def _claim(self, value: str, scope: Any, doc_type: Any) -> str:
        self.claims.setdefault(_claim_key(self.model, scope, doc_type), set()).add(value)
        logger.debug("Resolved slug %r for %s", value, self.model.__name__)
        return value
