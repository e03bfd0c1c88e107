# ==============================================
# Tests for FormWorkspace
# ==============================================
#
# Snapshot consistency, last-reload-wins ordering and the dashboard
# memo. Every test builds its own workspace over a MemoryStore.
# ==============================================

import pytest

from dynaform.config import AppConfig
from dynaform.errors import StoreError, ValidationError
from dynaform.storage import MemoryStore
from dynaform.workspace import FormWorkspace


class InterleavingStore(MemoryStore):
    """Runs a callback in the middle of the next list_records() call."""

    def __init__(self):
        super().__init__()
        self.interleave = None

    def list_records(self, form_type_id=None):
        if self.interleave is not None:
            callback, self.interleave = self.interleave, None
            callback()
        return super().list_records(form_type_id)


class BrokenInsertStore(MemoryStore):
    def insert_record(self, row):
        raise StoreError("service unavailable")


# ==============================================
# Loading
# ==============================================

class TestLoad:
    """Initial load and reload ordering."""

    def test_load_reads_all_collections(self, store, sample_form, sample_fields, adapter):
        adapter.create(sample_form.id, {sample_fields["note"].key: "hi"})
        ws = FormWorkspace(store=store).load()
        assert len(ws.fields) == 5
        assert [f.name for f in ws.form_types] == ["Invoice"]
        assert len(ws.all_records) == 1
        assert ws.get_status()["loaded"] is True

    def test_newest_reload_wins(self):
        store = InterleavingStore()
        ws = FormWorkspace(store=store).load()

        def newer_reload():
            store.insert_field({"name": "Late", "data_type": "text", "options": None})
            assert ws.reload() is True

        store.interleave = newer_reload
        assert ws.reload() is False
        assert [f.name for f in ws.fields] == ["Late"]

    def test_mutation_supersedes_in_flight_reload(self):
        store = InterleavingStore()
        ws = FormWorkspace(store=store).load()
        store.interleave = lambda: ws.create_field("Mid", "text")
        assert ws.reload() is False
        assert [f.name for f in ws.fields] == ["Mid"]

    def test_built_from_config(self):
        ws = FormWorkspace(config=AppConfig())
        assert isinstance(ws.store, MemoryStore)

    def test_context_manager(self, tmp_path):
        path = tmp_path / "snapshot.json"
        with FormWorkspace(store=MemoryStore(str(path))) as ws:
            ws.create_field("Amount", "number")
        assert path.exists()
        with FormWorkspace(store=MemoryStore(str(path))) as ws:
            assert [f.name for f in ws.fields] == ["Amount"]


# ==============================================
# Mutations
# ==============================================

class TestMutations:
    """The snapshot changes only after the store confirms."""

    def test_create_field_sorted_into_snapshot(self, workspace):
        workspace.create_field("Zeta", "text")
        workspace.create_field("Alpha", "number")
        assert [f.name for f in workspace.fields] == ["Alpha", "Zeta"]

    def test_failed_validation_leaves_snapshot(self, workspace):
        version = workspace.version
        with pytest.raises(ValidationError):
            workspace.create_field("Status", "selector", "")
        assert workspace.fields == []
        assert workspace.version == version

    def test_failed_store_call_leaves_snapshot(self):
        ws = FormWorkspace(store=BrokenInsertStore()).load()
        field = ws.create_field("Note", "text")
        form = ws.create_form_type("Form", None, [field.id])
        with pytest.raises(StoreError):
            ws.create_record(form.id, {field.key: "x"})
        assert ws.all_records == []

    def test_update_field_reaches_form_types(self, workspace):
        field = workspace.create_field("Status", "selector", "A,B")
        form = workspace.create_form_type("Form", None, [field.id])
        workspace.update_field(field.id, {"options": "A,B,C"})
        cached = workspace.form_type_by_id(form.id)
        assert cached.find_field(field.id).options == ["A", "B", "C"]

    def test_form_type_lifecycle(self, workspace):
        a = workspace.create_field("A", "text")
        b = workspace.create_field("B", "number")
        form = workspace.create_form_type("Form", "desc", [a.id, b.id])
        updated = workspace.update_form_type(form.id, "Renamed", None, [b.id])
        assert updated.field_ids == [b.id]
        assert [f.name for f in workspace.form_types] == ["Renamed"]
        workspace.delete_form_type(form.id)
        assert workspace.form_types == []

    def test_delete_field_in_use_refused(self, workspace):
        field = workspace.create_field("A", "text")
        workspace.create_form_type("Form", None, [field.id])
        with pytest.raises(ValidationError):
            workspace.delete_field(field.id)
        assert workspace.field_by_id(field.id) is not None

    def test_record_lifecycle(self, workspace):
        field = workspace.create_field("Paid", "boolean")
        form = workspace.create_form_type("Form", None, [field.id])
        first = workspace.create_record(form.id, {field.key: "true"})
        second = workspace.create_record(form.id, {field.key: "false"})
        assert [r.id for r in workspace.all_records] == [second.id, first.id]

        workspace.update_record(first.id, {field.key: "false"})
        assert workspace.records_for(form.id)[1].data == {field.key: "false"}

        workspace.delete_record(second.id)
        assert [r.id for r in workspace.all_records] == [first.id]

    def test_record_details(self, workspace):
        paid = workspace.create_field("Paid", "boolean")
        note = workspace.create_field("Note", "text")
        form = workspace.create_form_type("Form", None, [paid.id, note.id])
        record = workspace.create_record(form.id, {paid.key: "true", note.key: ""})
        assert workspace.record_details(record) == [
            {"field_id": paid.key, "name": "Paid", "value": "Yes"},
            {"field_id": note.key, "name": "Note", "value": "-"},
        ]


# ==============================================
# Dashboard
# ==============================================

class TestDashboardMemo:
    """One computation per selection and snapshot version."""

    def test_same_selection_is_memoized(self, workspace):
        assert workspace.dashboard() is workspace.dashboard()

    def test_mutation_invalidates(self, workspace):
        before = workspace.dashboard()
        workspace.create_field("A", "text")
        after = workspace.dashboard()
        assert after is not before
        assert after.counts.total_fields == 1

    def test_selected_form_statistics(self, workspace):
        amount = workspace.create_field("Amount", "number")
        form = workspace.create_form_type("Form", None, [amount.id])
        for value in ("10", "20", "bad", "30"):
            workspace.create_record(form.id, {amount.key: value})
        summary = workspace.dashboard(form.id).numeric_summaries[0]
        assert summary.count == 3
        assert summary.to_dict()["average"] == 20.0
