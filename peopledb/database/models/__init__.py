from peopledb.database.models.person import (
    DraftValidation,
    Person,
    PersonDraft,
    PersonProjection,
    stored_key,
    validate_draft,
    validate_update_value,
)

__all__ = [
    "DraftValidation",
    "Person",
    "PersonDraft",
    "PersonProjection",
    "stored_key",
    "validate_draft",
    "validate_update_value",
]
