# ==============================================
# Tests for MemoryStore
# ==============================================

import json

import pytest

from dynaform.errors import NotFoundError, StoreError
from dynaform.storage import MemoryStore


@pytest.fixture
def seeded(store):
    field = store.insert_field({"name": "Amount", "data_type": "number", "options": None})
    form = store.insert_form_type({"name": "Invoice", "description": None})
    store.insert_form_fields([{"form_type_id": form["id"], "field_id": field["id"], "sort_order": 0}])
    return field, form


class TestReferentialChecks:
    """The in-memory tables enforce the join-table references."""

    def test_wide_form_type(self, store, seeded):
        field, form = seeded
        wide = store.get_form_type(form["id"])
        assert wide["form_fields"] == [{"field_id": field["id"], "sort_order": 0, "field": field}]

    def test_link_to_missing_field(self, store, seeded):
        _, form = seeded
        with pytest.raises(NotFoundError):
            store.insert_form_fields([{"form_type_id": form["id"], "field_id": 99, "sort_order": 1}])

    def test_duplicate_link_rejected_without_partial_write(self, store, seeded):
        field, form = seeded
        other = store.insert_field({"name": "Note", "data_type": "text", "options": None})
        with pytest.raises(StoreError):
            store.insert_form_fields([
                {"form_type_id": form["id"], "field_id": other["id"], "sort_order": 1},
                {"form_type_id": form["id"], "field_id": field["id"], "sort_order": 2},
            ])
        assert len(store.list_form_fields(form["id"])) == 1

    def test_referenced_rows_cannot_be_deleted(self, store, seeded):
        field, form = seeded
        with pytest.raises(StoreError):
            store.delete_field(field["id"])
        with pytest.raises(StoreError):
            store.delete_form_type(form["id"])

    def test_record_needs_existing_form(self, store):
        with pytest.raises(NotFoundError):
            store.insert_record({"form_type_id": 5, "data": {}, "created_at": ""})

    def test_returned_rows_are_copies(self, store, seeded):
        field, _ = seeded
        field["name"] = "mutated"
        assert store.get_field(field["id"])["name"] == "Amount"


class TestSnapshotPersistence:
    """JSON snapshot save / load."""

    def test_save_and_load(self, tmp_path, seeded, store):
        path = tmp_path / "snapshot.json"
        _, form = seeded
        store.insert_record({"form_type_id": form["id"], "data": {"1": "5"}, "created_at": "2024-01-01T00:00:00+00:00"})
        store.save(str(path))

        restored = MemoryStore()
        restored.load(str(path))
        assert restored.list_fields() == store.list_fields()
        assert restored.list_form_types() == store.list_form_types()
        assert restored.list_records() == store.list_records()

        # ids keep counting from where the snapshot left off
        new_field = restored.insert_field({"name": "Later", "data_type": "text", "options": None})
        assert new_field["id"] == 2

    def test_snapshot_file_format(self, tmp_path, seeded, store):
        path = tmp_path / "snapshot.json"
        store.save(str(path))
        with open(path) as f:
            snapshot = json.load(f)
        assert set(snapshot) >= {"fields", "form_types", "form_fields", "records", "next_ids", "version"}

    def test_connect_and_disconnect_use_snapshot_path(self, tmp_path):
        path = tmp_path / "data" / "snapshot.json"
        with MemoryStore(str(path)) as first:
            first.insert_field({"name": "Amount", "data_type": "number", "options": None})
        with MemoryStore(str(path)) as second:
            assert [row["name"] for row in second.list_fields()] == ["Amount"]

    def test_save_without_path(self, store):
        with pytest.raises(StoreError):
            store.save()

    def test_corrupt_snapshot(self, tmp_path, store):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            store.load(str(path))
