"""Service layer.

- :mod:`tokengate.services.auth`: :class:`SessionManager` and its DTOs.
- :mod:`tokengate.services.documents`: :class:`DocumentService`.
- :mod:`tokengate.services._shared`: base service, errors and ports.
"""
