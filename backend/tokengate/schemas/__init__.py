"""Marshmallow schemas for request validation and response shaping."""

from tokengate.schemas.auth import (
    LoginSchema,
    MessageSchema,
    RefreshSchema,
    TokenPairSchema,
    ValidateSchema,
)
from tokengate.schemas.document import (
    DocumentCreateSchema,
    DocumentSchema,
    DocumentSearchQuerySchema,
)

__all__ = [
    "DocumentCreateSchema",
    "DocumentSchema",
    "DocumentSearchQuerySchema",
    "LoginSchema",
    "MessageSchema",
    "RefreshSchema",
    "TokenPairSchema",
    "ValidateSchema",
]
