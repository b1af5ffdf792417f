"""
DocumentService
===============

Application service behind the protected documents endpoints:

- Search documents (case-insensitive, newest first).
- Retrieve a document by id.
- Create a document owned by the caller.

Read operations use ``ro_uow()``; write operations use ``rw_uow()``.
"""

from __future__ import annotations

from tokengate.models.base import as_utc
from tokengate.models.document import Document
from tokengate.repositories.document import DocumentRepository
from tokengate.services._shared.base import BaseService
from tokengate.services._shared.errors import NotFoundError, ServiceError
from tokengate.services.documents.dto import DocumentCreateIn, DocumentOut, DocumentSearchIn


class DocumentService(BaseService):
    """Application service for the ``Document`` aggregate."""

    def search(self, dto: DocumentSearchIn) -> list[DocumentOut]:
        """
        List documents matching ``dto.search``.

        :param dto: Search parameters.
        :type dto: :class:`DocumentSearchIn`
        :returns: Matching documents, newest first.
        :rtype: list[DocumentOut]
        """
        with self.ro_uow() as uow:
            repo: DocumentRepository = uow.documents
            return [self._to_out(doc) for doc in repo.search(dto.search)]

    def get(self, document_id: int) -> DocumentOut:
        """
        Fetch one document.

        :raises NotFoundError: If no document has ``document_id``.
        """
        with self.ro_uow() as uow:
            repo: DocumentRepository = uow.documents
            doc = repo.get(document_id)
            if doc is None:
                raise NotFoundError("Document", document_id)
            return self._to_out(doc)

    def create(self, dto: DocumentCreateIn) -> DocumentOut:
        """
        Create a document authored by ``ctx.actor_id``.

        :raises ServiceError: If the title is blank.
        """
        if not dto.title or not dto.title.strip():
            raise ServiceError("Title is required.")
        with self.rw_uow() as uow:
            repo: DocumentRepository = uow.documents
            doc = repo.add(
                Document(
                    title=dto.title,
                    content=dto.content,
                    category=dto.category,
                    user_id=self.ctx.actor_id,
                    created_at=self.now_utc(),
                )
            )
            out = self._to_out(doc)
        return out

    @staticmethod
    def _to_out(doc: Document) -> DocumentOut:
        return DocumentOut(
            id=doc.id,
            title=doc.title,
            content=doc.content,
            category=doc.category,
            created_at=as_utc(doc.created_at),
            user_id=doc.user_id,
        )
