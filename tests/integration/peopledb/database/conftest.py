import os

import pytest
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from peopledb.database import MongoConnection, PersonRepository

# MongoDB connection settings
MONGO_URL = os.environ.get("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = "peopledb_test"


@pytest.fixture(scope="session")
def mongo_available():
    """Skip the integration tests when no MongoDB server answers a ping."""
    client = MongoClient(MONGO_URL, serverSelectionTimeoutMS=1000)
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        pytest.skip(f"MongoDB not reachable at {MONGO_URL}: {e}")
    finally:
        client.close()


@pytest.fixture(scope="function")
async def connection(mongo_available):
    """Connect to the test database and drop it after the test."""
    connection = MongoConnection(MONGO_URL, MONGO_DB)
    result = await connection.connect()
    assert result.ok, result.error
    try:
        yield connection
    finally:
        await connection.client.drop_database(MONGO_DB)
        await connection.close()


@pytest.fixture(scope="function")
def repository(connection):
    return PersonRepository.from_connection(connection)
