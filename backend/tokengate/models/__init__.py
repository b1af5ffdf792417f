from tokengate.models.document import Document
from tokengate.models.refresh_token import RefreshToken
from tokengate.models.user import User

__all__ = [
    "Document",
    "RefreshToken",
    "User",
]
