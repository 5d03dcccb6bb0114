"""Slugged document models shared by the test suite"""

from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

from docslug.crud.models import SluggedModel
from docslug.crud.registry import SlugRegistry


registry = SlugRegistry()


@registry.slugged("first_name", "last_name")
class Author(SluggedModel, table=True):
    __tablename__ = "authors"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None


@registry.slugged("title", history=True)
class Book(SluggedModel, table=True):
    __tablename__ = "books"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = ""


@registry.slugged("title", scope="book")
class Chapter(SluggedModel, table=True):
    __tablename__ = "chapters"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = ""
    book_id: Optional[UUID] = Field(default=None, foreign_key="books.id")
    book: Optional[Book] = Relationship()


@registry.slugged("name", permanent=True)
class Label(SluggedModel, table=True):
    __tablename__ = "labels"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = ""


@registry.slugged("title", by_model_type=True)
class Article(SluggedModel, table=True):
    __tablename__ = "articles"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = ""
    doc_type: Optional[str] = None


@registry.slugged("title", scope="site", reserve=["admin"], max_length=12)
class Page(SluggedModel, table=True):
    __tablename__ = "pages"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = ""
    site: Optional[str] = None


@registry.slugged(builder=lambda doc: f"{doc.year} {doc.name}")
class Event(SluggedModel, table=True):
    __tablename__ = "events"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = ""
    year: int = 2000


class Edition(SluggedModel, table=True):
    """Slug fields on a table keyed by two columns; not registered."""
    __tablename__ = "editions"
    book_code: str = Field(primary_key=True)
    number: int = Field(primary_key=True)
    title: str = ""


class Note(SQLModel, table=True):
    """A table without slug fields."""
    __tablename__ = "notes"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    body: str = ""
