import pytest
from bson import ObjectId

from peopledb.database import PersonDraft, PersonProjection, ValidationError, validate_draft
from peopledb.database.models.person import stored_key, validate_update_value


class TestValidateDraft:
    def test_accepts_stored_spelling(self):
        result = validate_draft({"name": "John Doe", "age": 25, "favoriteFoods": ["pizza", "pasta"]})
        assert result.ok
        assert result.error is None
        assert result.draft.favorite_foods == ["pizza", "pasta"]

    def test_accepts_python_spelling_and_existing_draft(self):
        draft = PersonDraft(name="Bob", favorite_foods=["burrito"])
        result = validate_draft(draft)
        assert result.ok
        assert result.draft == draft

    def test_age_and_foods_are_optional(self):
        result = validate_draft({"name": "Mary"})
        assert result.ok
        assert result.draft.age is None
        assert result.draft.favorite_foods == []

    def test_missing_name_is_rejected(self):
        result = validate_draft({"age": 3})
        assert not result.ok
        assert result.draft is None
        assert isinstance(result.error, ValidationError)
        assert result.error.fields == ("name",)
        assert "Invalid person" in str(result.error)

    def test_empty_name_is_rejected(self):
        result = validate_draft({"name": ""})
        assert not result.ok
        assert result.error.fields == ("name",)

    def test_wrong_types_are_reported_per_field(self):
        result = validate_draft({"name": "Alice", "age": "thirty", "favoriteFoods": [1]})
        assert not result.ok
        assert "age" in result.error.fields
        assert any(field.startswith("favoriteFoods") for field in result.error.fields)

    def test_unknown_fields_are_rejected(self):
        result = validate_draft({"name": "Alice", "nickname": "Al"})
        assert not result.ok
        assert result.error.fields == ("nickname",)


class TestPersonProjection:
    def test_as_stored_omits_fields_not_returned(self):
        oid = ObjectId()
        projection = PersonProjection.model_validate({"_id": oid, "name": "Alice", "favoriteFoods": ["burrito"]})

        assert projection.as_stored() == {"_id": oid, "name": "Alice", "favoriteFoods": ["burrito"]}
        assert "age" not in projection.model_fields_set

    def test_ignores_unexpected_keys(self):
        projection = PersonProjection.model_validate({"name": "Bob", "__v": 0})
        assert projection.as_stored() == {"name": "Bob"}


class TestStoredKey:
    @pytest.mark.parametrize(
        "field, expected",
        [
            ("age", "age"),
            ("-age", "age"),
            ("favorite_foods", "favoriteFoods"),
            ("favoriteFoods", "favoriteFoods"),
            ("-favoriteFoods", "favoriteFoods"),
            ("id", "_id"),
            ("_id", "_id"),
            ("name", "name"),
        ],
    )
    def test_maps_to_stored_key(self, field, expected):
        assert stored_key(field) == expected

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="Unknown Person field"):
            stored_key("height")


class TestValidateUpdateValue:
    def test_accepts_and_coerces_age(self):
        assert validate_update_value("age", 20) == 20
        assert validate_update_value("age", "20") == 20

    def test_rejects_non_integer_age(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_update_value("age", "twenty")
        assert exc_info.value.fields == ("age",)
        assert "Invalid person age" in str(exc_info.value)

    def test_food_must_be_a_string(self):
        assert validate_update_value("favorite_foods", "tacos") == "tacos"
        with pytest.raises(ValidationError) as exc_info:
            validate_update_value("favoriteFoods", 42)
        assert exc_info.value.fields == ("favoriteFoods",)

    def test_field_without_partial_update(self):
        with pytest.raises(ValueError, match="cannot be updated on its own"):
            validate_update_value("name", "Alice")
