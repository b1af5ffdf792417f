"""
DTOs for DocumentService.

Framework-agnostic contracts between the API layer and the documents
application service.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class DocumentSearchIn:
    """
    :param search: Case-insensitive substring matched against title, content
        and category. Blank lists everything.
    :type search: str | None
    """

    search: str | None = None


@dataclass(frozen=True, slots=True)
class DocumentCreateIn:
    title: str
    content: str = ""
    category: str = ""


@dataclass(frozen=True, slots=True)
class DocumentOut:
    """
    Public representation of a document.

    :param id: Document identifier.
    :param title: Headline.
    :param content: Body text.
    :param category: Grouping label.
    :param created_at: Creation timestamp.
    :param user_id: Author, ``None`` for seeded documents.
    """

    id: int
    title: str
    content: str
    category: str
    created_at: datetime
    user_id: int | None = None
