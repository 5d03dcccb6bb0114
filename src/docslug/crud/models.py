"""Slug storage fields and the slug history table"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, Text, UniqueConstraint


class SluggedModel(SQLModel):
    """Mixin declaring the slug storage fields on a document table.

    slug_lower is always the lowercase form of slug, or both are NULL.
    """
    slug: Optional[str] = Field(default=None, index=True, nullable=True)
    slug_lower: Optional[str] = Field(default=None, index=True, nullable=True)


class SlugHistory(SQLModel, table=True):
    """A slug previously assigned to a document; rows are never removed"""
    __tablename__ = "slug_history"
    __table_args__ = (UniqueConstraint("table_name", "document_id", "position", name="uq_slughist_doc_pos"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    table_name: str = Field(..., index=True, nullable=False, description="Table of the owning document")
    document_id: str = Field(..., index=True, nullable=False, description="Primary key of the owning document")
    slug: str = Field(..., sa_column=Column(Text, nullable=False))
    slug_lower: str = Field(..., index=True, nullable=False)
    scope: Optional[str] = Field(default=None, index=True, description="Scope value at the time of assignment")
    doc_type: Optional[str] = Field(default=None, description="Model type value at the time of assignment")
    position: int = Field(..., nullable=False, description="Monotonically increasing per-document position")
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
