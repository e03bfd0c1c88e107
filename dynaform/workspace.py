# ==============================================
# FormWorkspace (Snapshot + CRUD Facade)
# ==============================================
#
# PURPOSE:
#   The one object consumers hold. It ties the four topics together,
#   keeps the currently loaded Fields / FormTypes / Records, and
#   exposes every create/update/delete plus the dashboard.
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                      FormWorkspace                       │
#   │                                                          │
#   │   FieldRegistry ──┐                                      │
#   │   FormComposer  ──┼──► Store (memory/mysql/mongo/rest)   │
#   │   RecordAdapter ──┘                                      │
#   │         │ confirmed results only                         │
#   │         ▼                                                │
#   │   [ SNAPSHOT ] fields / form_types / records  (version)  │
#   │         │                                                │
#   │         ▼                                                │
#   │   compute_dashboard(snapshot, selection)  (memoized)     │
#   └──────────────────────────────────────────────────────────┘
#
# LIFECYCLE:
# ----------
#   load()   → connect the store (once) and reload()
#   reload() → fetch all three collections; the newest reload wins,
#              an older one that finishes late is discarded
#   mutate   → call the store; on success apply the confirmed row to
#              the snapshot; on failure the snapshot is untouched
#   close()  → disconnect the store
#
#   Instances are independent: pass one by reference, tests build
#   their own over a MemoryStore.
#
# ==============================================

import threading
from datetime import date, tzinfo
from typing import Any, Dict, List, Optional, Union

from dynaform.analysis.dashboard import (
    ALL_FORMS,
    DashboardSelection,
    DashboardView,
    compute_dashboard,
)
from dynaform.config import AppConfig, get_config
from dynaform.normalization.record_validator import RecordAdapter
from dynaform.normalization.value_codec import ValueCodec
from dynaform.schema.field_registry import FieldRegistry, OptionsInput
from dynaform.schema.form_composer import FormComposer
from dynaform.schema.models import DataType, Field, FormType, Record, key_of
from dynaform.storage import Store, create_store


class FormWorkspace:
    """
    Cached Field/FormType/Record snapshot with validated mutations.
    """

    def __init__(self, store: Optional[Store] = None, config: Optional[AppConfig] = None):
        """
        Args:
            store: Store to use. If None, one is built from config.
            config: Application configuration. If None, loads from environment.
        """
        if store is None:
            store = create_store(config or get_config())
        self.store = store

        self.field_registry = FieldRegistry(store)
        self.form_composer = FormComposer(store, self.field_registry)
        self.field_registry.reference_guard = self.form_composer.forms_using_field
        self.records = RecordAdapter(store)

        # Snapshot
        self._fields: List[Field] = []
        self._form_types: List[FormType] = []
        self._records: List[Record] = []
        self._version = 0
        self._loaded = False

        # Reload ordering
        self._lock = threading.Lock()
        self._generation = 0
        self._connected = False

        self._dashboard_cache: Dict[tuple, DashboardView] = {}

    # ======================================
    # Lifecycle
    # ======================================
    def load(self) -> "FormWorkspace":
        if not self._connected:
            self.store.connect()
            self._connected = True
        self.reload()
        return self

    def reload(self) -> bool:
        """
        Fetch fields, form types and records from the store.

        Returns:
            True if this reload's result was applied, False if a newer
            reload or mutation superseded it while it was in flight.
        """
        with self._lock:
            self._generation += 1
            ticket = self._generation

        fields = self.field_registry.list()
        form_types = self.form_composer.list()
        records = self.records.list()

        with self._lock:
            if ticket != self._generation:
                print(f"⚠ Discarding stale reload #{ticket} (newest is #{self._generation})")
                return False
            self._fields = fields
            self._form_types = form_types
            self._records = records
            self._loaded = True
            self._bump()

        print(f"✓ Loaded {len(fields)} fields, {len(form_types)} form types, {len(records)} records")
        return True

    def close(self) -> None:
        if self._connected:
            self.store.disconnect()
            self._connected = False
            print("✓ Workspace closed")

    def __enter__(self):
        return self.load()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _bump(self) -> None:
        # Caller holds self._lock
        self._version += 1
        self._dashboard_cache.clear()

    def _commit(self, apply) -> None:
        """Apply a confirmed change to the snapshot; in-flight reloads become stale."""
        with self._lock:
            self._generation += 1
            apply()
            self._bump()

    # ======================================
    # Snapshot accessors
    # ======================================
    @property
    def fields(self) -> List[Field]:
        return list(self._fields)

    @property
    def form_types(self) -> List[FormType]:
        return list(self._form_types)

    @property
    def all_records(self) -> List[Record]:
        return list(self._records)

    @property
    def version(self) -> int:
        return self._version

    def records_for(self, form_type_id: Any = ALL_FORMS) -> List[Record]:
        if form_type_id is None or form_type_id == ALL_FORMS:
            return list(self._records)
        wanted = key_of(form_type_id)
        return [r for r in self._records if key_of(r.form_type_id) == wanted]

    def field_by_id(self, field_id: Any) -> Optional[Field]:
        wanted = key_of(field_id)
        return next((f for f in self._fields if f.key == wanted), None)

    def form_type_by_id(self, form_type_id: Any) -> Optional[FormType]:
        wanted = key_of(form_type_id)
        return next((f for f in self._form_types if key_of(f.id) == wanted), None)

    def record_details(self, record: Record) -> List[Dict[str, str]]:
        """
        Display rows for one record: field name + formatted value.

        Keys that no longer resolve to a Field are skipped.
        """
        rows = []
        for key, raw in record.data.items():
            field = self.field_by_id(key)
            if field is None:
                continue
            rows.append({"field_id": key, "name": field.name, "value": ValueCodec.format(field, raw)})
        return rows

    # ======================================
    # Fields
    # ======================================
    def create_field(self, name: str, data_type: Union[str, DataType], options: OptionsInput = None) -> Field:
        field = self.field_registry.create(name, data_type, options)

        def apply():
            self._fields = sorted(self._fields + [field], key=lambda f: f.name)
        self._commit(apply)
        return field

    def update_field(self, field_id: Any, patch: Dict[str, Any]) -> Field:
        field = self.field_registry.update(field_id, patch)

        def apply():
            self._fields = sorted(
                [field if f.key == field.key else f for f in self._fields], key=lambda f: f.name
            )
            # Resolved copies inside form types must follow the new definition
            for form in self._form_types:
                for ref in form.fields:
                    if key_of(ref.field_id) == field.key:
                        ref.field = field
        self._commit(apply)
        return field

    def delete_field(self, field_id: Any) -> None:
        self.field_registry.delete(field_id)
        wanted = key_of(field_id)

        def apply():
            self._fields = [f for f in self._fields if f.key != wanted]
        self._commit(apply)

    # ======================================
    # Form types
    # ======================================
    def create_form_type(self, name: str, description: Optional[str] = None,
                         field_ids: Optional[List[Any]] = None) -> FormType:
        form_type = self.form_composer.create(name, description, field_ids or [])

        def apply():
            self._form_types = sorted(self._form_types + [form_type], key=lambda f: f.name)
        self._commit(apply)
        return form_type

    def update_form_type(self, form_type_id: Any, name: str, description: Optional[str] = None,
                         field_ids: Optional[List[Any]] = None) -> FormType:
        self.form_composer.update(form_type_id, name, description, field_ids or [])
        form_type = self.form_composer.get(form_type_id)
        wanted = key_of(form_type_id)

        def apply():
            kept = [f for f in self._form_types if key_of(f.id) != wanted]
            self._form_types = sorted(kept + [form_type], key=lambda f: f.name)
        self._commit(apply)
        return form_type

    def delete_form_type(self, form_type_id: Any) -> None:
        self.form_composer.delete(form_type_id)
        wanted = key_of(form_type_id)

        def apply():
            self._form_types = [f for f in self._form_types if key_of(f.id) != wanted]
        self._commit(apply)

    # ======================================
    # Records
    # ======================================
    def create_record(self, form_type_id: Any, data: Dict[str, Any]) -> Record:
        record = self.records.create(form_type_id, data)

        def apply():
            self._records = [record] + self._records
        self._commit(apply)
        return record

    def update_record(self, record_id: Any, data: Dict[str, Any]) -> Record:
        record = self.records.update(record_id, data)
        wanted = key_of(record_id)

        def apply():
            self._records = [record if key_of(r.id) == wanted else r for r in self._records]
        self._commit(apply)
        return record

    def delete_record(self, record_id: Any) -> None:
        self.records.delete(record_id)
        wanted = key_of(record_id)

        def apply():
            self._records = [r for r in self._records if key_of(r.id) != wanted]
        self._commit(apply)

    # ======================================
    # Dashboard
    # ======================================
    def dashboard(self, form_type_id: Any = ALL_FORMS, group_by_field: Any = None,
                  today: Optional[date] = None, tz: Optional[tzinfo] = None) -> DashboardView:
        """
        Dashboard statistics for the current snapshot.

        Memoized per (selection, snapshot version, today, tz); any
        snapshot change clears the memo.
        """
        selection = DashboardSelection(form_type_id, group_by_field)
        cache_key = (key_of(form_type_id), None if group_by_field is None else key_of(group_by_field),
                     self._version, today, tz)
        view = self._dashboard_cache.get(cache_key)
        if view is None:
            view = compute_dashboard(
                self._fields, self._form_types, self._records, selection, today=today, tz=tz
            )
            self._dashboard_cache[cache_key] = view
        return view

    def get_status(self) -> Dict[str, Any]:
        return {
            "store": self.store.name,
            "loaded": self._loaded,
            "snapshot_version": self._version,
            "fields": len(self._fields),
            "form_types": len(self._form_types),
            "records": len(self._records),
        }
