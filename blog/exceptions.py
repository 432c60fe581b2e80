"""
Typed failures raised by the service layer.

Callers catch ``RepositoryError`` for any data-access failure, or one of the
subclasses below when they need to react to a specific case.  Driver errors
are chained (``raise ... from exc``) so the original cause stays available.
"""


class RepositoryError(Exception):
    """Base class for every error raised by the services."""


class NotFound(RepositoryError):
    """A lookup matched no document."""


class InvalidID(RepositoryError):
    """An identifier is not a 24-hex-character ObjectId string."""


class InvalidCredentials(RepositoryError):
    """Unknown username or wrong password; the two are never distinguished."""


class SaltGenerationError(RepositoryError):
    pass


class HashError(RepositoryError):
    pass


class NotPersisted(RepositoryError):
    """An insert was rejected or its document could not be read back."""


class QueryError(RepositoryError):
    """A list query failed."""


class WriteError(RepositoryError):
    """An update or delete was rejected by the store."""
