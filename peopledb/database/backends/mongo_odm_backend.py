from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

from beanie import Document, PydanticObjectId
from bson import ObjectId
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from peopledb.core import ifnone
from peopledb.database.backends.odm_backend import Filter, PeopleDBODMBackend, SortSpec
from peopledb.database.connection import MongoConnection
from peopledb.database.core.exceptions import DocumentNotFoundError, translate_store_errors


class PeopleDBDocument(Document):
    """
    Base document class for MongoDB collections in peopledb.

    Example:
        .. code-block:: python

            from peopledb.database import PeopleDBDocument

            class Pet(PeopleDBDocument):
                name: str

                class Settings:
                    name = "pets"
    """

    class Settings:
        """
        Configuration settings for the document.

        Attributes:
            use_cache (bool): Whether to enable caching for this document type.
        """

        use_cache = False


def parse_object_id(value: Any) -> Optional[PydanticObjectId]:
    """Return ``value`` as an ObjectId, or None when it is not a well-formed id."""
    if isinstance(value, ObjectId):
        return PydanticObjectId(value)
    if isinstance(value, str) and ObjectId.is_valid(value):
        return PydanticObjectId(value)
    return None


T = TypeVar("T", bound=PeopleDBDocument)


class MongoODMBackend(PeopleDBODMBackend, Generic[T]):
    """
    MongoDB implementation of the peopledb ODM backend.

    This backend provides asynchronous database operations using MongoDB as the underlying storage engine. It uses
    Beanie ODM for document modeling and the PyMongo async collection for atomic and pipelined operations. The client is
    owned by the injected :class:`MongoConnection`; the backend registers its model on first use.

    Args:
        model_cls (Type[T]): The document model class to use for operations.
        connection (MongoConnection): The connection handle shared by the process.

    Example:
        .. code-block:: python

            from peopledb.database import MongoConnection, MongoODMBackend, Person, PersonDraft

            connection = MongoConnection("mongodb://localhost:27017", "peopledb")
            await connection.connect()

            backend = MongoODMBackend(Person, connection)
            person = await backend.insert(PersonDraft(name="John", age=25))
    """

    def __init__(self, model_cls: Type[T], connection: MongoConnection, **kwargs):
        super().__init__(**kwargs)
        self.model_cls: Type[T] = model_cls
        self.connection = connection

    async def initialize(self):
        """
        Register the document model with Beanie on the shared connection.

        Raises:
            StoreUnavailableError: If the connection has not been established.
        """
        await self.connection.register_models([self.model_cls])

    @property
    def collection(self) -> AsyncCollection:
        return self.model_cls.get_pymongo_collection()

    def _parse(self, raw: Optional[Mapping[str, Any]]) -> Optional[T]:
        return None if raw is None else self.model_cls.model_validate(raw)

    async def insert(self, obj: BaseModel) -> T:
        """
        Insert a new document into the MongoDB collection.

        Args:
            obj (BaseModel): The object to insert into the database.

        Returns:
            T: The inserted document with its generated id.

        Raises:
            DuplicateInsertError: If the document violates unique constraints.
            StoreUnavailableError: If the store cannot be reached.
        """
        await self.initialize()
        doc = self.model_cls(**obj.model_dump())
        with translate_store_errors("insert"):
            return await doc.insert()

    async def insert_many(self, objs: Sequence[BaseModel]) -> List[T]:
        """
        Insert several documents with a single ordered bulk write.

        Ids are assigned before the write so that the returned documents carry them. If the store rejects a document
        midway, the documents before it remain inserted (ordered bulk-write semantics).

        Args:
            objs (Sequence[BaseModel]): The objects to insert.

        Returns:
            List[T]: The inserted documents, in input order.
        """
        await self.initialize()
        docs = [self.model_cls(**obj.model_dump()) for obj in objs]
        if not docs:
            return []
        for doc in docs:
            doc.id = PydanticObjectId()
        with translate_store_errors("insert_many"):
            await self.model_cls.insert_many(docs)
        return docs

    async def get(self, id: str | PydanticObjectId) -> T:
        """
        Retrieve a document by its unique identifier.

        Args:
            id (str | PydanticObjectId): The identifier of the document to retrieve.

        Returns:
            T: The retrieved document.

        Raises:
            DocumentNotFoundError: If no document with the given id exists, or the id is malformed.
        """
        oid = parse_object_id(id)
        if oid is None:
            raise DocumentNotFoundError(f"Object with id {id!r} not found: malformed id")
        await self.initialize()
        with translate_store_errors("get"):
            doc = await self.model_cls.get(oid)
        if doc is None:
            raise DocumentNotFoundError(f"Object with id {id} not found")
        return doc

    async def save(self, doc: T) -> T:
        """Replace the stored document with ``doc`` (inserting it if it has no stored counterpart)."""
        await self.initialize()
        with translate_store_errors("save"):
            await doc.save()
        return doc

    async def find(self, filter: Filter) -> List[T]:
        """
        Find documents matching the specified criteria.

        Example:
            .. code-block:: python

                people = await backend.find({"name": "Mary"})
        """
        await self.initialize()
        with translate_store_errors("find"):
            return await self.model_cls.find(dict(filter)).to_list()

    async def find_one(self, filter: Filter) -> Optional[T]:
        await self.initialize()
        with translate_store_errors("find_one"):
            return await self.model_cls.find_one(dict(filter))

    async def find_one_and_update(self, filter: Filter, update: Mapping[str, Any]) -> Optional[T]:
        """
        Atomically update one matching document and return it as it is after the update.

        Example:
            .. code-block:: python

                alice = await backend.find_one_and_update({"name": "Alice"}, {"$set": {"age": 20}})
        """
        await self.initialize()
        with translate_store_errors("find_one_and_update"):
            raw = await self.collection.find_one_and_update(
                dict(filter), dict(update), return_document=ReturnDocument.AFTER
            )
        return self._parse(raw)

    async def update_by_id(self, id: str | PydanticObjectId, update: Mapping[str, Any]) -> Optional[T]:
        oid = parse_object_id(id)
        if oid is None:
            return None
        return await self.find_one_and_update({"_id": oid}, update)

    async def remove(self, id: str | PydanticObjectId) -> Optional[T]:
        """
        Delete a document by its unique identifier and return the deleted document.

        Returns:
            Optional[T]: The removed document, or None if it did not exist or the id is malformed.
        """
        oid = parse_object_id(id)
        if oid is None:
            return None
        await self.initialize()
        with translate_store_errors("remove"):
            raw = await self.collection.find_one_and_delete({"_id": oid})
        return self._parse(raw)

    async def delete_many(self, filter: Filter) -> int:
        await self.initialize()
        with translate_store_errors("delete_many"):
            result = await self.collection.delete_many(dict(filter))
        return result.deleted_count

    async def query(
        self,
        filter: Filter,
        *,
        sort: Optional[SortSpec] = None,
        limit: int = 0,
        exclude: Sequence[str] = (),
        projection_model: Optional[Type[BaseModel]] = None,
    ) -> List[Any]:
        """
        Run a filter, sort, limit and projection pipeline.

        The stages are always applied in that order regardless of how the arguments are passed, so ``limit`` keeps
        the first documents of the sorted result.

        Args:
            filter: Query filter.
            sort: Sequence of ``(field, direction)`` pairs, e.g. ``[("name", 1)]``.
            limit: Maximum number of documents; 0 means no limit.
            exclude: Stored field names to omit from the results.
            projection_model: Model to parse the results into. Defaults to the document model, which requires the
                excluded fields to be optional.

        Example:
            .. code-block:: python

                people = await backend.query(
                    {"favoriteFoods": "burrito"},
                    sort=[("name", 1)],
                    limit=2,
                    exclude=["age"],
                    projection_model=PersonProjection,
                )
        """
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        await self.initialize()
        projection = {field: 0 for field in exclude} or None
        cursor = self.collection.find(dict(filter), projection)
        if sort:
            cursor = cursor.sort(list(sort))
        if limit:
            cursor = cursor.limit(limit)
        with translate_store_errors("query"):
            raw_docs = await cursor.to_list(length=None)
        model = ifnone(projection_model, self.model_cls)
        return [model.model_validate(raw) for raw in raw_docs]
