from abc import abstractmethod
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from peopledb.core import PeopleDBABC

Filter = Mapping[str, Any]
SortSpec = Sequence[Tuple[str, int]]


class PeopleDBODMBackend(PeopleDBABC):
    """
    Abstract interface for the document stores used by peopledb.

    A backend is bound to a single document model. Every operation is a coroutine and performs exactly one request
    against the store (``insert_many`` performs one bulk request). Backends translate driver errors into the
    exceptions defined in :mod:`peopledb.database.core.exceptions`.
    """

    @abstractmethod
    async def initialize(self):
        """Prepare the backend for use. Called implicitly by every operation."""

    @abstractmethod
    async def insert(self, obj: BaseModel):
        """Insert one document built from ``obj`` and return it with its generated id."""

    @abstractmethod
    async def insert_many(self, objs: Sequence[BaseModel]) -> List[Any]:
        """Insert documents built from ``objs`` and return them, in order, with their ids."""

    @abstractmethod
    async def get(self, id: Any):
        """Return the document with the given id or raise ``DocumentNotFoundError``."""

    @abstractmethod
    async def save(self, doc):
        """Write the full document back to the store."""

    @abstractmethod
    async def find(self, filter: Filter) -> List[Any]:
        """Return every document matching ``filter``."""

    @abstractmethod
    async def find_one(self, filter: Filter):
        """Return one document matching ``filter`` or None."""

    @abstractmethod
    async def find_one_and_update(self, filter: Filter, update: Mapping[str, Any]):
        """Atomically apply ``update`` to one matching document and return it after the update, or None."""

    @abstractmethod
    async def update_by_id(self, id: Any, update: Mapping[str, Any]):
        """Atomically apply ``update`` to the document with the given id and return it, or None."""

    @abstractmethod
    async def remove(self, id: Any):
        """Delete the document with the given id and return it, or None if it did not exist."""

    @abstractmethod
    async def delete_many(self, filter: Filter) -> int:
        """Delete every document matching ``filter`` and return how many were deleted."""

    @abstractmethod
    async def query(
        self,
        filter: Filter,
        *,
        sort: Optional[SortSpec] = None,
        limit: int = 0,
        exclude: Sequence[str] = (),
        projection_model: Optional[Type[BaseModel]] = None,
    ) -> List[Any]:
        """Filter, then sort, then limit, then project out the ``exclude`` fields."""
