from peopledb.database.core.exceptions import (
    DocumentNotFoundError,
    DuplicateInsertError,
    PeopleDBDatabaseError,
    StoreError,
    StoreUnavailableError,
    ValidationError,
)
from peopledb.database.core.settings import DatabaseSettings
from peopledb.database.connection import ConnectionResult, MongoConnection
from peopledb.database.backends.odm_backend import PeopleDBODMBackend
from peopledb.database.backends.mongo_odm_backend import MongoODMBackend, PeopleDBDocument
from peopledb.database.models import DraftValidation, Person, PersonDraft, PersonProjection, validate_draft
from peopledb.database.repositories import PersonRepository

__all__ = [
    "ConnectionResult",
    "DatabaseSettings",
    "DocumentNotFoundError",
    "DraftValidation",
    "DuplicateInsertError",
    "MongoConnection",
    "MongoODMBackend",
    "PeopleDBDatabaseError",
    "PeopleDBDocument",
    "PeopleDBODMBackend",
    "Person",
    "PersonDraft",
    "PersonProjection",
    "PersonRepository",
    "StoreError",
    "StoreUnavailableError",
    "ValidationError",
    "validate_draft",
]
