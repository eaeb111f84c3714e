"""
Walk through every PersonRepository operation against the configured MongoDB.

Usage::

    MONGO_URI="mongodb://localhost:27017" python -m peopledb.database.demo

Steps run one after another inside a single failure scope: the first failing step is logged and the remaining
steps are skipped.
"""

import asyncio
import logging
import sys

from peopledb.core import get_logger
from peopledb.database.connection import CONNECTED_EVENT, ERROR_EVENT, MongoConnection
from peopledb.database.repositories.person_repository import PersonRepository

SAMPLE_PERSON = {"name": "John Doe", "age": 25, "favoriteFoods": ["pizza", "pasta"]}

SAMPLE_PEOPLE = [
    {"name": "Alice", "age": 30, "favoriteFoods": ["pizza", "burrito"]},
    {"name": "Bob", "age": 25, "favoriteFoods": ["hamburger", "burrito"]},
    {"name": "Mary", "age": 28, "favoriteFoods": ["salad"]},
    {"name": "Mary", "age": 32, "favoriteFoods": ["burrito", "tacos"]},
]

logger = get_logger("database.demo", stream_level=logging.INFO)


async def run_demo(repository: PersonRepository) -> bool:
    """Run the demonstration steps. Returns False if a step failed, True otherwise."""
    try:
        logger.info("1. Creating and saving one person...")
        await repository.insert_one(SAMPLE_PERSON)

        logger.info("2. Creating many people...")
        created = await repository.insert_many(SAMPLE_PEOPLE)

        logger.info("3. Finding people named Mary...")
        await repository.find_by_name("Mary")

        logger.info("4. Finding person who likes burrito...")
        await repository.find_one_by_favorite_food("burrito")

        if created:
            logger.info("5. Finding person by ID...")
            await repository.find_by_id(created[0].id)

            logger.info("6. Adding hamburger to person's favorites...")
            await repository.append_favorite_food_and_save(created[0].id, "hamburger")

        logger.info("7. Updating Alice's age to 20...")
        await repository.update_age_by_name("Alice", 20)

        logger.info("8. Running query chain (find burrito lovers)...")
        await repository.query_favorite_food("burrito", limit=2, exclude_field="age")

        logger.info("9. Removing all people named Mary...")
        await repository.remove_all_by_name("Mary")
    except Exception as e:
        logger.exception(f"Error in demo, remaining steps skipped: {e}")
        return False

    logger.info("All demo steps completed successfully")
    return True


async def main() -> bool:
    connection = MongoConnection(stream_level=logging.INFO)
    connection.on(CONNECTED_EVENT, lambda uri, db_name: logger.info(f"Connected to MongoDB at {uri}"))
    connection.on(ERROR_EVENT, lambda error: logger.error(f"MongoDB connection error: {error}"))

    # A failed connection is not fatal here; the first step reports it
    await connection.connect()
    try:
        repository = PersonRepository.from_connection(connection)
        return await run_demo(repository)
    finally:
        await connection.close()


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
