"""Document repository with case-insensitive search."""

from __future__ import annotations

from sqlalchemy import func, or_, select

from tokengate.models.document import Document
from tokengate.repositories.base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Persistence-only repository for :class:`Document`."""

    model = Document
    sortable = {
        "created_at": Document.created_at,
        "title": Document.title,
        "category": Document.category,
    }
    filterable = {
        "title": Document.title,
        "category": Document.category,
        "user_id": Document.user_id,
    }

    def search(self, term: str | None = None, *, limit: int | None = None) -> list[Document]:
        """Return documents whose title, content or category contains ``term``.

        Matching is case-insensitive; results are newest first. A blank term
        lists every document.

        :param term: Substring to look for.
        :type term: str | None
        :param limit: Optional row cap.
        :type limit: int | None
        :returns: Matching documents.
        :rtype: list[Document]
        """
        stmt = select(Document)
        needle = (term or "").strip().lower()
        if needle:
            pattern = f"%{needle}%"
            stmt = stmt.where(
                or_(
                    func.lower(Document.title).like(pattern),
                    func.lower(Document.content).like(pattern),
                    func.lower(Document.category).like(pattern),
                )
            )
        stmt = self._ordered(stmt, ["-created_at"], newest_first=True)
        if limit is not None:
            stmt = stmt.limit(int(limit))
        return self._all(stmt)

    def get_by_title(self, title: str) -> Document | None:
        return self.find_one(title=title)
