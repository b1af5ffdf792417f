"""Unit of Work contract shared by services and their in-memory doubles."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class UnitOfWork(ABC):
    """One transactional scope per use case.

    ``users``, ``refresh_tokens``, ``documents`` and the ``sessions`` store
    all operate on the same transaction. Leaving the ``with`` block normally
    commits; leaving it through an exception rolls back and re-raises.
    """

    users: Any
    refresh_tokens: Any
    documents: Any
    sessions: Any

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
