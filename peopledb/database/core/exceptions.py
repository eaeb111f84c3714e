from contextlib import contextmanager
from typing import Iterator, Sequence

from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError


class PeopleDBDatabaseError(Exception):
    """Base exception for all database errors raised by peopledb."""


class ValidationError(PeopleDBDatabaseError):
    """Raised when a document is missing required fields or holds values of the wrong type.

    Args:
        message: Human readable description of the problem.
        fields: Names of the offending fields.
    """

    def __init__(self, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.fields = tuple(fields)


class DocumentNotFoundError(PeopleDBDatabaseError):
    """Raised when a referenced document does not exist."""


class StoreUnavailableError(PeopleDBDatabaseError):
    """Raised when the store cannot be reached or no connection has been established."""


class StoreError(PeopleDBDatabaseError):
    """Raised for any other failure reported by the store."""


class DuplicateInsertError(StoreError):
    """Raised when an insert violates a unique constraint."""


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise PyMongo errors raised inside the block as peopledb database errors.

    The original driver exception is chained as ``__cause__``.

    Example:
        .. code-block:: python

            with translate_store_errors("insert"):
                await doc.insert()
    """
    try:
        yield
    except DuplicateKeyError as e:
        raise DuplicateInsertError(f"Duplicate key error during {operation}: {e}") from e
    except ConnectionFailure as e:
        raise StoreUnavailableError(f"Store unavailable during {operation}: {e}") from e
    except PyMongoError as e:
        raise StoreError(f"Store error during {operation}: {e}") from e
