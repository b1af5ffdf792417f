from tokengate.services.documents.dto import DocumentCreateIn, DocumentOut, DocumentSearchIn
from tokengate.services.documents.service import DocumentService

__all__ = ["DocumentCreateIn", "DocumentOut", "DocumentSearchIn", "DocumentService"]
