"""
Person models.

- PersonDraft: a person before it is persisted (no id)
- Person: the Beanie document stored in the ``people`` collection
- PersonProjection: a partial person returned by projected queries
- validate_draft: explicit validation step run before any store call

Stored document shape::

    { _id: ObjectId, name: string, age: number | absent, favoriteFoods: array<string> }
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

import pydantic
from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from peopledb.database.backends.mongo_odm_backend import PeopleDBDocument
from peopledb.database.core.exceptions import ValidationError

# Python attribute name -> stored key, for fields whose names differ
STORED_KEYS = {"id": "_id", "favorite_foods": "favoriteFoods"}


class PersonDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str = Field(min_length=1)
    age: Optional[int] = None
    favorite_foods: List[str] = Field(default_factory=list, alias="favoriteFoods")


class Person(PeopleDBDocument):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    age: Optional[int] = None
    favorite_foods: List[str] = Field(default_factory=list, alias="favoriteFoods")

    class Settings:
        name = "people"
        use_cache = False
        keep_nulls = False


class PersonProjection(BaseModel):
    """A person with only the fields a projection returned. Omitted fields are unset rather than None."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[PydanticObjectId] = Field(default=None, alias="_id")
    name: Optional[str] = None
    age: Optional[int] = None
    favorite_foods: Optional[List[str]] = Field(default=None, alias="favoriteFoods")

    def as_stored(self) -> dict:
        """Return the returned fields under their stored keys."""
        return self.model_dump(by_alias=True, exclude_unset=True)


def stored_key(field: str) -> str:
    """Map a Person field name, Python or stored spelling, to its stored key.

    A leading ``-`` (exclusion spelling) is stripped.

    Raises:
        ValueError: If the name is not a Person field.
    """
    field = field.lstrip("-")
    key = STORED_KEYS.get(field, field)
    if key not in {"_id", "name", "age", "favoriteFoods"}:
        raise ValueError(f"Unknown Person field: {field!r}")
    return key


@dataclass(frozen=True)
class DraftValidation:
    """Tagged result of :func:`validate_draft`: ``draft`` when ``ok``, ``error`` otherwise."""

    ok: bool
    draft: Optional[PersonDraft] = None
    error: Optional[ValidationError] = None


def validate_draft(data: PersonDraft | Mapping[str, Any]) -> DraftValidation:
    """Validate a person draft without touching the store.

    Example:
        .. code-block:: python

            result = validate_draft({"age": 3})
            assert not result.ok
            assert result.error.fields == ("name",)
    """
    if isinstance(data, PersonDraft):
        data = data.model_dump()
    try:
        return DraftValidation(ok=True, draft=PersonDraft.model_validate(data))
    except pydantic.ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        message = "; ".join(f"{field}: {err['msg']}" for field, err in zip(fields, e.errors()))
        return DraftValidation(ok=False, error=ValidationError(f"Invalid person: {message}", fields=fields))


# Stored key -> type of a single value written to it by a partial update
_UPDATE_VALUE_ADAPTERS = {"age": TypeAdapter(int), "favoriteFoods": TypeAdapter(str)}


def validate_update_value(field: str, value: Any) -> Any:
    """Validate one value written by a partial update (``$set`` of ``age``, ``$push`` to ``favoriteFoods``).

    Returns the validated value, e.g. ``"20"`` becomes ``20`` for ``age``.

    Raises:
        ValidationError: If the value does not fit the field. ``fields`` holds the stored key.
        ValueError: If the field is not a Person field.
    """
    key = stored_key(field)
    adapter = _UPDATE_VALUE_ADAPTERS.get(key)
    if adapter is None:
        raise ValueError(f"Person field {field!r} cannot be updated on its own")
    try:
        return adapter.validate_python(value)
    except pydantic.ValidationError as e:
        message = "; ".join(err["msg"] for err in e.errors())
        raise ValidationError(f"Invalid person {key}: {message}", fields=[key]) from e
