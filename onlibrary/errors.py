"""Error taxonomy shared by the library services and the HTTP layer."""

from __future__ import annotations


class LibraryError(Exception):
    """Base class for every error raised by onlibrary."""


class ValidationError(ValueError, LibraryError):
    """Input rejected before anything is written."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(LibraryError):
    pass


class PermissionDeniedError(LibraryError):
    pass


class DemoModeError(PermissionDeniedError):
    """Raised when a demo session attempts a write."""

    def __init__(self, action: str = "save your own books"):
        super().__init__(f"This is a demo! Sign up to {action}.")


class PersistenceError(LibraryError):
    """A read or write against the document store failed."""


class TagBatchError(PersistenceError):
    """A bulk tag operation aborted on its first failed write.

    Writes that were already committed are *not* rolled back; ``committed``
    says how many books were updated before the abort.
    """

    def __init__(self, operation: str, cause: BaseException, committed: int, attempted: int):
        super().__init__(
            f"{operation} failed after updating {committed} of {attempted} books: {cause}"
        )
        self.operation = operation
        self.cause = cause
        self.committed = committed
        self.attempted = attempted
