"""Domain error taxonomy.

Every core operation surfaces failures through one of these. The HTTP
boundary maps ``status_code`` onto the response; the core never retries.
"""


class VowError(Exception):
    """Base class for all domain failures."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(VowError):
    """Missing or out-of-range input."""

    status_code = 400


class NotFoundError(VowError):
    """Unknown promise, user or delete request."""

    status_code = 404


class InvalidTransitionError(VowError):
    """Operation on an entity already in a terminal state."""

    status_code = 409


class StorageError(VowError):
    """Persistence failure, distinct from an uninitialized collection."""

    status_code = 503
