"""Engine and session helpers"""

from sqlmodel import Session, create_engine

from docslug.crud.models import SlugHistory


def make_engine(db_url: str, echo: bool = False):
    return create_engine(db_url, echo=echo)


def init_db(engine) -> None:
    """Create every table registered on SQLModel.metadata, including slug_history."""
    SlugHistory.metadata.create_all(engine)


def drop_db(engine) -> None:
    SlugHistory.metadata.drop_all(engine)


def session_scope(engine, registry=None) -> Session:
    """Open a Session, with the registry's slug rebuilding installed when given."""
    session = Session(engine)
    if registry is not None:
        registry.install(session)
    return session
