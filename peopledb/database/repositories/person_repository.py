from typing import Any, List, Mapping, Optional, Sequence

from beanie import PydanticObjectId

from peopledb.core import PeopleDB
from peopledb.database.backends.mongo_odm_backend import MongoODMBackend
from peopledb.database.backends.odm_backend import PeopleDBODMBackend
from peopledb.database.connection import MongoConnection
from peopledb.database.core.exceptions import DocumentNotFoundError, ValidationError
from peopledb.database.models.person import (
    Person,
    PersonDraft,
    PersonProjection,
    stored_key,
    validate_draft,
    validate_update_value,
)

PersonId = str | PydanticObjectId
DraftLike = PersonDraft | Mapping[str, Any]


class PersonRepository(PeopleDB):
    """
    CRUD and query operations over the ``people`` collection.

    Every operation is a single request against the backend, except :meth:`append_favorite_food_and_save`, which
    loads the person and writes it back. Failures are logged and re-raised unchanged.

    Args:
        backend: ODM backend bound to the :class:`Person` model.

    Example:
        .. code-block:: python

            from peopledb.database import MongoConnection, PersonRepository

            async with MongoConnection() as connection:
                people = PersonRepository.from_connection(connection)
                john = await people.insert_one({"name": "John Doe", "age": 25, "favoriteFoods": ["pizza"]})
                marys = await people.find_by_name("Mary")
    """

    def __init__(self, backend: PeopleDBODMBackend, **kwargs):
        super().__init__(**kwargs)
        self.backend = backend

    @classmethod
    def from_connection(cls, connection: MongoConnection, **kwargs) -> "PersonRepository":
        return cls(MongoODMBackend(Person, connection), **kwargs)

    @PeopleDB.autolog()
    async def insert_one(self, draft: DraftLike) -> Person:
        """Validate and insert one person. Raises ``ValidationError`` before any store call if the draft is invalid."""
        result = validate_draft(draft)
        if not result.ok:
            raise result.error
        person = await self.backend.insert(result.draft)
        self.logger.info(f"Created and saved person: {person.name} ({person.id})")
        return person

    @PeopleDB.autolog()
    async def insert_many(self, drafts: Sequence[DraftLike]) -> List[Person]:
        """Validate every draft, then insert them all in one bulk write.

        The batch is all-or-nothing at validation: a single invalid draft raises ``ValidationError`` and nothing is
        written.
        """
        results = [validate_draft(draft) for draft in drafts]
        failed = [(index, r.error) for index, r in enumerate(results) if not r.ok]
        if failed:
            index, error = failed[0]
            raise ValidationError(f"Draft at index {index} rejected, batch not inserted: {error}", fields=error.fields)
        people = await self.backend.insert_many([r.draft for r in results])
        self.logger.info(f"Created many people: {len(people)}")
        return people

    @PeopleDB.autolog()
    async def find_by_name(self, name: str) -> List[Person]:
        people = await self.backend.find({"name": name})
        self.logger.info(f"Found {len(people)} people named {name}")
        return people

    @PeopleDB.autolog()
    async def find_one_by_favorite_food(self, food: str) -> Optional[Person]:
        """Return one person whose favorite foods contain ``food``; which one is up to the store."""
        person = await self.backend.find_one({"favoriteFoods": food})
        self.logger.info(f"Found person who likes {food}: {person.name if person else 'None'}")
        return person

    @PeopleDB.autolog()
    async def find_by_id(self, person_id: PersonId) -> Optional[Person]:
        """Return the person, or None if it does not exist or ``person_id`` is malformed."""
        try:
            person = await self.backend.get(person_id)
        except DocumentNotFoundError:
            person = None
        self.logger.info(f"Found person by ID: {person.name if person else 'Not found'}")
        return person

    @PeopleDB.autolog()
    async def append_favorite_food_and_save(self, person_id: PersonId, food: str) -> Person:
        """Load the person, append ``food`` and write the whole document back.

        This is a read-modify-write without any concurrency check: two concurrent calls on the same id can both load
        the same state, and the later write drops the earlier append. Use :meth:`append_favorite_food_atomic` when
        callers may race.

        Raises:
            DocumentNotFoundError: If the person does not exist.
            ValidationError: If ``food`` is not a string. Raised before any store call.
        """
        food = validate_update_value("favoriteFoods", food)
        person = await self.backend.get(person_id)
        person.favorite_foods.append(food)
        person = await self.backend.save(person)
        self.logger.info(f"Added {food} to person's favorites: {person.name}")
        return person

    @PeopleDB.autolog()
    async def append_favorite_food_atomic(self, person_id: PersonId, food: str) -> Person:
        """Append ``food`` with a single ``$push`` so concurrent appends are never lost.

        Raises:
            DocumentNotFoundError: If the person does not exist.
            ValidationError: If ``food`` is not a string. Raised before any store call.
        """
        food = validate_update_value("favoriteFoods", food)
        person = await self.backend.update_by_id(person_id, {"$push": {"favoriteFoods": food}})
        if person is None:
            raise DocumentNotFoundError(f"Person with id {person_id} not found")
        self.logger.info(f"Added {food} to person's favorites: {person.name}")
        return person

    @PeopleDB.autolog()
    async def update_age_by_name(self, name: str, new_age: int) -> Optional[Person]:
        """Atomically set the age of one person with the given name. Never creates a person.

        Raises:
            ValidationError: If ``new_age`` is not an integer. Raised before any store call.
        """
        new_age = validate_update_value("age", new_age)
        person = await self.backend.find_one_and_update({"name": name}, {"$set": {"age": new_age}})
        self.logger.info(f"Updated {name}'s age to {new_age}: {person.name if person else 'Not found'}")
        return person

    @PeopleDB.autolog()
    async def remove_by_id(self, person_id: PersonId) -> Optional[Person]:
        person = await self.backend.remove(person_id)
        self.logger.info(f"Removed person: {person.name if person else 'Not found'}")
        return person

    @PeopleDB.autolog()
    async def remove_all_by_name(self, name: str) -> int:
        deleted = await self.backend.delete_many({"name": name})
        self.logger.info(f"Removed people named {name}: {deleted}")
        return deleted

    @PeopleDB.autolog()
    async def query_favorite_food(
        self, food: str, limit: int = 2, exclude_field: str = "age"
    ) -> List[PersonProjection]:
        """Return people who like ``food``, sorted by name, at most ``limit`` of them, without ``exclude_field``.

        Args:
            food: Food that must appear in the person's favorite foods.
            limit: Maximum number of results; 0 means no limit.
            exclude_field: Field omitted from every result. Accepts the Python or stored spelling, with or without
                a leading ``-``.

        Raises:
            ValueError: If ``limit`` is negative or ``exclude_field`` is not a Person field.
        """
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        people = await self.backend.query(
            {"favoriteFoods": food},
            sort=[("name", 1)],
            limit=limit,
            exclude=[stored_key(exclude_field)],
            projection_model=PersonProjection,
        )
        self.logger.info(f"Query results: {len(people)} people who like {food}")
        return people
