"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from tokengate.repositories.base import BaseRepository, order_clauses
from tokengate.repositories.document import DocumentRepository
from tokengate.repositories.refresh_token import RefreshTokenRepository
from tokengate.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "DocumentRepository",
    "RefreshTokenRepository",
    "UserRepository",
    "order_clauses",
]
