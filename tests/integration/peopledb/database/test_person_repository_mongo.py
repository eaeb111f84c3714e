import asyncio

import pytest
from bson import ObjectId

from peopledb.database import (
    DocumentNotFoundError,
    MongoConnection,
    PersonRepository,
    StoreUnavailableError,
    ValidationError,
)
from peopledb.database.demo import SAMPLE_PEOPLE, SAMPLE_PERSON, run_demo

pytestmark = pytest.mark.integration


async def test_insert_one_and_find_by_id(repository):
    john = await repository.insert_one(SAMPLE_PERSON)

    fetched = await repository.find_by_id(john.id)
    assert fetched.name == "John Doe"
    assert fetched.age == 25
    assert fetched.favorite_foods == ["pizza", "pasta"]

    assert await repository.find_by_id(str(john.id)) is not None
    assert await repository.find_by_id(ObjectId()) is None
    assert await repository.find_by_id("not-an-id") is None


async def test_stored_shape_uses_stored_keys(repository, connection):
    await repository.insert_one({"name": "Mary"})

    raw = await connection.database["people"].find_one({"name": "Mary"})
    assert {"_id", "name", "favoriteFoods"} <= set(raw)
    assert "age" not in raw
    assert "favorite_foods" not in raw
    assert raw["favoriteFoods"] == []


async def test_invalid_draft_writes_nothing(repository, connection):
    with pytest.raises(ValidationError):
        await repository.insert_one({"age": 3})
    with pytest.raises(ValidationError):
        await repository.insert_many([{"name": "Alice"}, {"age": "old"}])

    assert await connection.database["people"].count_documents({}) == 0


async def test_insert_many_and_find(repository):
    created = await repository.insert_many(SAMPLE_PEOPLE)
    assert [p.name for p in created] == ["Alice", "Bob", "Mary", "Mary"]
    assert len({p.id for p in created}) == 4

    marys = await repository.find_by_name("Mary")
    assert sorted(p.age for p in marys) == [28, 32]
    assert await repository.find_by_name("Nobody") == []

    burrito_lover = await repository.find_one_by_favorite_food("burrito")
    assert "burrito" in burrito_lover.favorite_foods
    assert await repository.find_one_by_favorite_food("sushi") is None


async def test_append_favorite_food(repository):
    [alice] = await repository.insert_many([{"name": "Alice", "favoriteFoods": ["pizza"]}])

    updated = await repository.append_favorite_food_and_save(alice.id, "hamburger")
    assert updated.favorite_foods == ["pizza", "hamburger"]

    updated = await repository.append_favorite_food_atomic(alice.id, "tacos")
    assert updated.favorite_foods == ["pizza", "hamburger", "tacos"]

    with pytest.raises(DocumentNotFoundError):
        await repository.append_favorite_food_and_save(ObjectId(), "hamburger")
    with pytest.raises(DocumentNotFoundError):
        await repository.append_favorite_food_atomic(ObjectId(), "hamburger")


async def test_concurrent_atomic_appends_are_all_kept(repository):
    person = await repository.insert_one({"name": "Bob"})
    foods = [f"food-{i}" for i in range(10)]

    await asyncio.gather(*(repository.append_favorite_food_atomic(person.id, food) for food in foods))

    stored = await repository.find_by_id(person.id)
    assert sorted(stored.favorite_foods) == sorted(foods)


async def test_update_age_by_name(repository):
    await repository.insert_many(SAMPLE_PEOPLE)

    alice = await repository.update_age_by_name("Alice", 20)
    assert alice.age == 20
    assert (await repository.find_by_name("Alice"))[0].age == 20

    assert await repository.update_age_by_name("Nobody", 20) is None
    assert await repository.find_by_name("Nobody") == []


async def test_remove(repository):
    john = await repository.insert_one(SAMPLE_PERSON)
    await repository.insert_many(SAMPLE_PEOPLE)

    removed = await repository.remove_by_id(john.id)
    assert removed.name == "John Doe"
    assert await repository.remove_by_id(john.id) is None
    assert await repository.remove_by_id("not-an-id") is None

    assert await repository.remove_all_by_name("Mary") == 2
    assert await repository.remove_all_by_name("Mary") == 0
    assert await repository.find_by_name("Mary") == []


async def test_query_favorite_food(repository):
    await repository.insert_many(SAMPLE_PEOPLE)

    people = await repository.query_favorite_food("burrito", limit=2, exclude_field="age")
    assert [p.name for p in people] == ["Alice", "Bob"]
    for person in people:
        stored = person.as_stored()
        assert "age" not in stored
        assert "burrito" in stored["favoriteFoods"]

    everyone = await repository.query_favorite_food("burrito", limit=0, exclude_field="favoriteFoods")
    assert [p.name for p in everyone] == ["Alice", "Bob", "Mary"]
    assert all("favoriteFoods" not in p.as_stored() for p in everyone)

    assert await repository.query_favorite_food("sushi") == []


async def test_run_demo(repository):
    assert await run_demo(repository) is True
    assert await repository.find_by_name("Mary") == []


async def test_operations_fail_without_connection():
    connection = MongoConnection("mongodb://localhost:27017", "peopledb_test")
    repository = PersonRepository.from_connection(connection)

    with pytest.raises(StoreUnavailableError):
        await repository.find_by_name("Mary")


async def test_two_connections_keep_their_own_database(connection):
    other = MongoConnection(connection._db_uri, "peopledb_test_other")
    assert (await other.connect()).ok
    try:
        people = PersonRepository.from_connection(connection)
        other_people = PersonRepository.from_connection(other)

        await people.insert_one({"name": "Alice"})
        await other_people.insert_one({"name": "Bob"})
        await people.insert_one({"name": "Mary"})

        assert sorted(p.name for p in await people.find_by_name("Alice") + await people.find_by_name("Mary")) == [
            "Alice",
            "Mary",
        ]
        assert await people.find_by_name("Bob") == []
        assert [p.name for p in await other_people.find_by_name("Bob")] == ["Bob"]
        await people.backend.initialize()
        assert people.backend.collection.database.name == "peopledb_test"
    finally:
        await other.client.drop_database("peopledb_test_other")
        await other.close()
