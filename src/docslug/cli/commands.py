"""CLI command implementations"""

import logging
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from docslug.config import Settings, load_config
from docslug.core.utils.slug import to_url
from docslug.crud.database import drop_db, init_db, make_engine
from docslug.crud.history import list_history_for


logger = logging.getLogger(__name__)


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    return settings


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    db_url: Annotated[Optional[str], typer.Option("--db-url", help="Database URL")] = None,
    ):
    """Create the slug_history table and any other registered tables."""
    settings = _settings(overrides={"db_url": db_url})
    engine = make_engine(settings.db_url, echo=settings.echo_sql)
    try:
        if reset:
            drop_db(engine)
            typer.echo("Existing data cleared.")
        init_db(engine)
    except Exception as e:
        _fail("Database initialization failed", e)
    logger.info("Initialized schema at %s", settings.db_url)
    typer.echo(f"Database initialized at: {settings.db_url}")


def slugify_cmd(
    text: Annotated[str, typer.Argument(help="Text to transliterate")],
    max_length: Annotated[Optional[int], typer.Option("--max-length", help="Truncate the slug to this length")] = None,
    ):
    """Preview the slug candidate produced for TEXT (before uniqueness checks)."""
    settings = _settings(overrides={"max_length": max_length})
    slug = to_url(text, max_length=settings.max_length)
    if not slug:
        _fail(f"'{text}' produces an empty slug")
    typer.echo(slug)


def history_cmd(
    table: Annotated[str, typer.Argument(help="Table name of the document model")],
    document_id: Annotated[str, typer.Argument(help="Primary key of the document")],
    db_url: Annotated[Optional[str], typer.Option("--db-url", help="Database URL")] = None,
    ):
    """List the previous slugs of a document, oldest first."""
    settings = _settings(overrides={"db_url": db_url})
    engine = make_engine(settings.db_url, echo=settings.echo_sql)
    try:
        with Session(engine) as session:
            slugs = list_history_for(session, table, document_id)
    except Exception as e:
        _fail("History lookup failed", e)
    if not slugs:
        typer.echo(f"No slug history for {table} {document_id}.")
        raise typer.Exit(1)
    for position, slug in enumerate(slugs, start=1):
        typer.echo(f"  {position}: {slug}")
