from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pydantic
import pytest
from bson import ObjectId

from peopledb.database import StoreUnavailableError, ValidationError
from peopledb.database import demo
from peopledb.database.demo import SAMPLE_PEOPLE, SAMPLE_PERSON, run_demo


@pytest.fixture
def repository():
    repository = MagicMock()
    for method in (
        "insert_one",
        "insert_many",
        "find_by_name",
        "find_one_by_favorite_food",
        "find_by_id",
        "append_favorite_food_and_save",
        "update_age_by_name",
        "query_favorite_food",
        "remove_all_by_name",
    ):
        setattr(repository, method, AsyncMock())
    return repository


async def test_run_demo_runs_every_step_in_order(repository):
    alice = SimpleNamespace(id=ObjectId(), name="Alice")
    repository.insert_many.return_value = [alice]

    assert await run_demo(repository) is True

    repository.insert_one.assert_awaited_once_with(SAMPLE_PERSON)
    repository.insert_many.assert_awaited_once_with(SAMPLE_PEOPLE)
    repository.find_by_name.assert_awaited_once_with("Mary")
    repository.find_one_by_favorite_food.assert_awaited_once_with("burrito")
    repository.find_by_id.assert_awaited_once_with(alice.id)
    repository.append_favorite_food_and_save.assert_awaited_once_with(alice.id, "hamburger")
    repository.update_age_by_name.assert_awaited_once_with("Alice", 20)
    repository.query_favorite_food.assert_awaited_once_with("burrito", limit=2, exclude_field="age")
    repository.remove_all_by_name.assert_awaited_once_with("Mary")


async def test_run_demo_skips_id_steps_without_created_people(repository):
    repository.insert_many.return_value = []

    assert await run_demo(repository) is True

    repository.find_by_id.assert_not_awaited()
    repository.append_favorite_food_and_save.assert_not_awaited()
    repository.remove_all_by_name.assert_awaited_once()


async def test_run_demo_stops_at_first_failure(repository, caplog):
    repository.insert_many.side_effect = ValidationError("Draft at index 0 rejected", fields=["name"])

    assert await run_demo(repository) is False

    repository.insert_one.assert_awaited_once()
    repository.find_by_name.assert_not_awaited()
    repository.remove_all_by_name.assert_not_awaited()
    assert "Error in demo, remaining steps skipped" in caplog.text


async def test_main_closes_connection_when_unreachable():
    connection = MagicMock()
    connection.connect = AsyncMock()
    connection.close = AsyncMock()
    repository = MagicMock()
    repository.insert_one = AsyncMock(side_effect=StoreUnavailableError("Not connected to MongoDB."))

    with (
        patch.object(demo, "MongoConnection", return_value=connection),
        patch.object(demo.PersonRepository, "from_connection", return_value=repository),
    ):
        assert await demo.main() is False

    connection.connect.assert_awaited_once()
    connection.close.assert_awaited_once()


@pytest.mark.parametrize(
    "error",
    [
        ValueError("limit must be >= 0, got -1"),
        pydantic.ValidationError.from_exception_data("PersonProjection", []),
    ],
)
async def test_run_demo_contains_errors_from_outside_the_database_layer(repository, error, caplog):
    repository.insert_many.return_value = []
    repository.query_favorite_food.side_effect = error

    assert await run_demo(repository) is False

    repository.remove_all_by_name.assert_not_awaited()
    assert "Error in demo, remaining steps skipped" in caplog.text
