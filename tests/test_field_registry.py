# ==============================================
# Tests for FieldRegistry
# ==============================================

import pytest

from dynaform.errors import NotFoundError, ValidationError
from dynaform.schema import DataType, parse_options


class TestParseOptions:
    """Comma-delimited option input."""

    def test_trims_and_drops_empty_entries(self):
        """"a, b,,c" -> [a, b, c]"""
        assert parse_options("a, b,,c") == ["a", "b", "c"]

    def test_keeps_order_and_duplicates(self):
        assert parse_options("b,a,b") == ["b", "a", "b"]

    def test_list_input(self):
        assert parse_options([" x ", "", "y"]) == ["x", "y"]

    def test_nothing_left_is_none(self):
        assert parse_options(" , ,") is None
        assert parse_options(None) is None


class TestCreateField:
    """Field creation and its invariants."""

    def test_create_text_field(self, registry):
        field = registry.create("  Notes ", "text")
        assert field.name == "Notes"
        assert field.data_type == DataType.TEXT
        assert field.options is None

    def test_selector_needs_options(self, registry):
        with pytest.raises(ValidationError):
            registry.create("Status", "selector", " , ")

    def test_options_dropped_for_non_selector(self, registry):
        field = registry.create("Amount", "number", "a,b")
        assert field.options is None

    def test_unknown_data_type(self, registry):
        with pytest.raises(ValidationError):
            registry.create("Color", "rgb")

    def test_empty_name(self, registry):
        with pytest.raises(ValidationError):
            registry.create("   ", "text")

    def test_validation_failure_writes_nothing(self, registry, store):
        with pytest.raises(ValidationError):
            registry.create("", "text")
        assert store.list_fields() == []

    def test_list_ordered_by_name(self, registry):
        registry.create("Zeta", "text")
        registry.create("Alpha", "number")
        assert [f.name for f in registry.list()] == ["Alpha", "Zeta"]


class TestUpdateField:
    """Partial updates are merged and validated as a whole."""

    def test_rename_keeps_options(self, registry):
        field = registry.create("Status", "selector", "A,B")
        updated = registry.update(field.id, {"name": "State"})
        assert updated.name == "State"
        assert updated.options == ["A", "B"]

    def test_switch_to_selector_without_options_rejected(self, registry):
        field = registry.create("Kind", "text")
        with pytest.raises(ValidationError):
            registry.update(field.id, {"data_type": "selector"})

    def test_switch_away_from_selector_clears_options(self, registry):
        field = registry.create("Kind", "selector", "x,y")
        updated = registry.update(field.id, {"data_type": "text"})
        assert updated.options is None

    def test_unknown_patch_key(self, registry):
        field = registry.create("Kind", "text")
        with pytest.raises(ValidationError):
            registry.update(field.id, {"color": "red"})

    def test_type_change_refused_once_values_recorded(self, registry, sample_form, sample_fields, adapter):
        adapter.create(sample_form.id, {sample_fields["note"].key: "hello"})
        with pytest.raises(ValidationError):
            registry.update(sample_fields["note"].id, {"data_type": "number"})

    def test_missing_field(self, registry):
        with pytest.raises(NotFoundError):
            registry.update(999, {"name": "x"})


class TestDeleteField:
    """Deletion is refused while a form type still lists the field."""

    def test_delete_unused_field(self, registry, store):
        field = registry.create("Temp", "text")
        registry.delete(field.id)
        assert store.list_fields() == []

    def test_delete_referenced_field_names_forms(self, registry, sample_form, sample_fields):
        with pytest.raises(ValidationError) as excinfo:
            registry.delete(sample_fields["amount"].id)
        assert "Invoice" in str(excinfo.value)

    def test_delete_after_form_removed(self, registry, composer, sample_form, sample_fields):
        composer.delete(sample_form.id)
        registry.delete(sample_fields["amount"].id)
        assert sample_fields["amount"].key not in registry.index()
