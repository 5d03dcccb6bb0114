"""Save-path behavior: slugs built, rebuilt and left alone as documents are flushed"""

import pytest
from sqlmodel import select

from docslug.core.errors import ResolutionFailure
from sample_models import Article, Author, Book, Chapter, Event, Label, Page, registry


def _save(session, *docs):
    for d in docs:
        session.add(d)
    session.commit()
    for d in docs:
        session.refresh(d)
    return docs[0] if len(docs) == 1 else docs


# --- create ---

def test_create_builds_slug_from_fields(session):
    """A fresh document gets its slug from the source fields."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    assert doc.slug == "jane-doe"
    assert doc.slug_lower == "jane-doe"


def test_create_duplicate_is_disambiguated(session):
    """A second document with identical names gets a suffixed slug."""
    first = _save(session, Author(first_name="Jane", last_name="Doe"))
    second = _save(session, Author(first_name="Jane", last_name="Doe"))
    third = _save(session, Author(first_name="Jane", last_name="Doe"))
    assert first.slug == "jane-doe"
    assert second.slug == "jane-doe-1"
    assert third.slug == "jane-doe-2"


def test_create_duplicates_in_one_flush(session):
    """Documents flushed together never share a slug."""
    a, b = _save(session, Author(first_name="Jane", last_name="Doe"), Author(first_name="Jane", last_name="Doe"))
    assert {a.slug, b.slug} == {"jane-doe", "jane-doe-1"}


def test_create_keeps_user_slug(session):
    """A slug supplied on creation is used instead of the source fields."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe", slug="The Pen Name"))
    assert doc.slug == "the-pen-name"


def test_create_with_blank_fields_leaves_slug_unset(session):
    """When every source field is blank no slug is assigned."""
    doc = _save(session, Author(first_name="", last_name=None))
    assert doc.slug is None
    assert doc.slug_lower is None


def test_create_reserved_word_is_suffixed(session):
    """Reserved words are never accepted as the final slug."""
    assert _save(session, Author(first_name="New")).slug == "new-1"
    assert _save(session, Page(title="Admin")).slug == "admin-1"


def test_create_custom_builder(session):
    """A model with a custom builder slugs its output."""
    assert _save(session, Event(name="Launch", year=2024)).slug == "2024-launch"


def test_create_truncates_to_max_length(session):
    """Slugs respect the configured length cap, suffix included."""
    first = _save(session, Page(title="A very long page title"))
    second = _save(session, Page(title="A very long page title"))
    assert first.slug == "a-very-long"
    assert len(second.slug) <= 12
    assert second.slug != first.slug


# --- update ---

def test_update_source_field_rebuilds(session):
    """Changing a source field produces a new slug reflecting the new value."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    doc.last_name = "Roe"
    doc = _save(session, doc)
    assert doc.slug == "jane-roe"
    assert doc.slug_lower == "jane-roe"


def test_update_keeps_own_slug_when_unchanged(session):
    """Rebuilding to the same value does not collide with the document itself."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    doc.first_name = "jane"
    doc = _save(session, doc)
    assert doc.slug == "jane-doe"


def test_update_user_slug(session):
    """Editing the slug on a persisted document keeps the edited value."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    doc.slug = "Hand Made"
    doc = _save(session, doc)
    assert doc.slug == "hand-made"
    assert doc.slug_lower == "hand-made"


def test_update_user_slug_collision(session):
    """An edited slug that is already taken is disambiguated."""
    _save(session, Author(first_name="Jane", last_name="Doe"))
    other = _save(session, Author(first_name="John", last_name="Doe"))
    other.slug = "jane-doe"
    other = _save(session, other)
    assert other.slug == "jane-doe-1"


def test_update_to_blank_fields_keeps_previous_slug(session):
    """An empty rebuilt candidate leaves the previous slug in place."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    doc.first_name = ""
    doc.last_name = ""
    doc = _save(session, doc)
    assert doc.slug == "jane-doe"


def test_unusable_user_slug_on_create(session):
    """A supplied slug that transliterates to nothing leaves both slug fields unset."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe", slug="!!!"))
    assert doc.slug is None
    assert doc.slug_lower is None


def test_unusable_user_slug_on_update(session):
    """An edited slug that transliterates to nothing is dropped; the stored pair stays intact."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    doc.slug = "!!!"
    doc = _save(session, doc)
    stored = session.exec(select(Author.slug, Author.slug_lower).where(Author.id == doc.id)).one()
    assert tuple(stored) == ("jane-doe", "jane-doe")


def test_permanent_slug_survives_updates(session):
    """A permanent slug never changes after creation."""
    doc = _save(session, Label(name="First"))
    for name in ("Second", "Third"):
        doc.name = name
        doc = _save(session, doc)
        assert doc.slug == "first"


def test_resave_without_changes_makes_no_resolver_calls(session, resolver_calls):
    """A save touching no slug-affecting field never calls the resolver."""
    doc = _save(session, Author(first_name="Jane", last_name="Doe"))
    assert resolver_calls == ["Jane Doe"]
    doc.bio = "Writes things"
    _save(session, doc)
    session.add(doc)
    session.commit()
    assert resolver_calls == ["Jane Doe"]


# --- scope and type partitioning ---

def test_scope_allows_same_slug_in_different_scopes(session):
    """Documents in different scopes may share a slug."""
    b1, b2 = _save(session, Book(title="Dune"), Book(title="Emma"))
    c1 = _save(session, Chapter(title="Intro", book_id=b1.id))
    c2 = _save(session, Chapter(title="Intro", book_id=b2.id))
    assert c1.slug == c2.slug == "intro"


def test_scope_disambiguates_within_scope(session):
    """Documents in the same scope never share a slug."""
    book = _save(session, Book(title="Dune"))
    c1 = _save(session, Chapter(title="Intro", book_id=book.id))
    c2 = _save(session, Chapter(title="Intro", book=book))
    assert c1.slug == "intro"
    assert c2.slug == "intro-1"


def test_sibling_field_scope(session):
    """A plain column works as a scope."""
    p1 = _save(session, Page(title="Home", site="docs"))
    p2 = _save(session, Page(title="Home", site="blog"))
    p3 = _save(session, Page(title="Home", site="docs"))
    assert p1.slug == p2.slug == "home"
    assert p3.slug == "home-1"


def test_type_partitioning(session):
    """Documents of different model types may share a slug."""
    a = _save(session, Article(title="News", doc_type="Article"))
    e = _save(session, Article(title="News", doc_type="Essay"))
    a2 = _save(session, Article(title="News", doc_type="Article"))
    assert a.slug == e.slug == "news"
    assert a2.slug == "news-1"


def test_type_partitioning_fills_unset_type(session):
    """A document saved without a type is stored under the model's default type name."""
    doc = _save(session, Article(title="News"))
    assert doc.doc_type == "Article"
    assert doc.slug == "news"
    assert _save(session, Article(title="News", doc_type="Article")).slug == "news-1"


# --- failures ---

def test_resolver_failure_aborts_save(session, monkeypatch):
    """A resolver error propagates out of commit and nothing is stored."""
    class Failing:
        def __init__(self, *args):
            pass

        def resolve_unique(self, *args):
            raise ResolutionFailure("no room")

    monkeypatch.setattr(registry, "resolver_factory", Failing)
    session.add(Author(first_name="Jane", last_name="Doe"))
    with pytest.raises(ResolutionFailure):
        session.commit()
    session.rollback()
    assert session.exec(select(Author)).all() == []
