"""Tests for field declarations and the audit mixin.

Verifies that:
- Field constructors tag types and derive nullability from primary keys
- ``field_schema()`` preserves declaration order and rejects duplicates
- ``compose_schema()`` appends exactly ``createdOn``/``updatedOn`` and
  rejects collisions with them
- Composed schemas are read-only
"""

import pytest
from pydantic import ValidationError

from cms_schema.errors import SchemaConflictError, SchemaDefinitionError
from cms_schema.schema.fields import (
    AUDIT_FIELDS,
    FieldRef,
    blob,
    compose_schema,
    field_schema,
    integer,
    text,
)


# ============================================================================
# Field constructors
# ============================================================================


class TestFieldConstructors:
    """Verify text/integer/blob produce the expected FieldDef."""

    def test_text_field_defaults(self) -> None:
        """Plain text fields are nullable and not part of the key."""
        f = text("title")
        assert f.name == "title"
        assert f.type == "text"
        assert f.nullable is True
        assert f.primary_key is False
        assert f.references is None

    def test_primary_key_is_not_nullable(self) -> None:
        """A primary-key field defaults to NOT NULL."""
        f = text("id", primary_key=True)
        assert f.primary_key is True
        assert f.nullable is False

    def test_explicit_not_null(self) -> None:
        f = text("id", nullable=False)
        assert f.nullable is False
        assert f.primary_key is False

    def test_integer_and_blob_types(self) -> None:
        assert integer("count").type == "integer"
        assert blob("avatar").type == "blob"

    def test_references_become_field_ref(self) -> None:
        """references=(table, field) is stored as a FieldRef."""
        f = text("postId", references=("posts", "id"))
        assert f.references == FieldRef(table="posts", field="id")

    def test_choices_are_a_tag_only(self) -> None:
        """choices records allowed values without restricting anything."""
        f = text("role", choices=("admin", "user"))
        assert f.choices == ("admin", "user")

    def test_field_def_is_frozen(self) -> None:
        f = text("title")
        with pytest.raises(ValidationError):
            f.name = "other"


# ============================================================================
# field_schema()
# ============================================================================


class TestFieldSchema:
    """Verify ordered, read-only schemas."""

    def test_preserves_declaration_order(self) -> None:
        schema = field_schema(text("id", primary_key=True), text("b"), text("a"))
        assert list(schema) == ["id", "b", "a"]

    def test_duplicate_field_names_rejected(self) -> None:
        with pytest.raises(SchemaConflictError, match="title"):
            field_schema(text("title"), integer("title"))

    def test_schema_is_read_only(self) -> None:
        schema = field_schema(text("id"))
        with pytest.raises(TypeError):
            schema["other"] = text("other")  # type: ignore[index]


# ============================================================================
# Audit mixin / compose_schema()
# ============================================================================


class TestComposeSchema:
    """Verify audit-field composition."""

    def test_audit_fields_are_integer_timestamps(self) -> None:
        assert list(AUDIT_FIELDS) == ["createdOn", "updatedOn"]
        assert all(f.type == "integer" for f in AUDIT_FIELDS.values())

    def test_audit_fields_appended_after_entity_fields(self) -> None:
        schema = field_schema(text("id", primary_key=True), text("name"))
        composed = compose_schema(schema)
        assert list(composed) == ["id", "name", "createdOn", "updatedOn"]

    def test_field_set_is_union_without_duplicates(self) -> None:
        schema = field_schema(text("id", primary_key=True), text("body"))
        composed = compose_schema(schema)
        assert set(composed) == set(schema) | {"createdOn", "updatedOn"}
        assert len(composed) == len(schema) + 2

    def test_deterministic(self) -> None:
        """Same input yields the same ordering every time."""
        schema = field_schema(text("z"), text("a"), text("m"))
        assert list(compose_schema(schema)) == list(compose_schema(schema))

    def test_does_not_modify_input(self) -> None:
        schema = field_schema(text("id"))
        compose_schema(schema)
        assert list(schema) == ["id"]

    @pytest.mark.parametrize("reserved", ["createdOn", "updatedOn"])
    def test_collision_with_audit_field_rejected(self, reserved: str) -> None:
        schema = field_schema(text("id"), integer(reserved))
        with pytest.raises(SchemaConflictError, match=reserved):
            compose_schema(schema)

    def test_conflict_error_is_definition_error(self) -> None:
        """All declaration failures share one base class."""
        assert issubclass(SchemaConflictError, SchemaDefinitionError)
