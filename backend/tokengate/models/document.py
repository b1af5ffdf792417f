"""Document model served by the protected documents endpoints."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from tokengate.core.extensions import db

from .base import CreatedAtMixin, PKMixin, ReprMixin


class Document(PKMixin, ReprMixin, CreatedAtMixin, db.Model):
    """
    Short knowledge-base article.

    Fields
    ------
    title : str
        Required headline.
    content : str
        Body text.
    category : str
        Free-form grouping label.
    user_id : int | None
        Author; ``None`` for seeded documents.
    """

    __tablename__ = "documents"
    __repr_attrs__ = ("title",)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_documents_created_at", "created_at"),
        Index("ix_documents_category", "category"),
    )

    @validates("title")
    def _validate_title(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Title is required.")
        return value.strip()
