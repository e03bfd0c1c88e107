# ==============================================
# MemoryStore
# ==============================================
#
# PURPOSE:
#   Dict-backed implementation of the Store contract. Used by the
#   test-suite and for single-operator setups where the whole data
#   set is persisted as one JSON snapshot on disk.
#
# CLASS: MemoryStore
# ------------------
#   Stateful, holds the four tables in memory.
#
#   Constructor:
#   ------------
#   - __init__(snapshot_path: str | None = None)
#       If snapshot_path exists, its contents are loaded on connect().
#
#   Referential checks (mirrors the FKs the SQL backend declares):
#     - form_fields rows must point at an existing form type and field
#     - a form type with form_fields rows cannot be deleted
#     - a field with form_fields rows cannot be deleted
#
#   Persistence:
#   ------------
#   - save(path=None) -> None   → Write all tables to a JSON file
#   - load(path=None) -> None   → Replace tables from a JSON file
#   - clear() -> None           → Drop everything (for tests / reset)
#
# FILE STRUCTURE:
# ---------------
#   snapshot.json
#   {
#     "fields": [...], "form_types": [...], "form_fields": [...],
#     "records": [...], "next_ids": {...}, "saved_at": "...", "version": "1.0"
#   }
#
# ==============================================

import copy
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from dynaform.errors import NotFoundError, StoreError
from dynaform.schema.models import key_of
from .base import Store, assemble_form_type, sort_records


class MemoryStore(Store):
    """In-memory store with optional JSON snapshot persistence."""

    name = "memory"

    def __init__(self, snapshot_path: Optional[str] = None):
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self.clear()

    def connect(self) -> None:
        if self.snapshot_path and self.snapshot_path.exists():
            self.load()

    def disconnect(self) -> None:
        if self.snapshot_path:
            self.save()

    # ======================================
    # Internal helpers
    # ======================================
    def _next_id(self, table: str) -> int:
        self._next_ids[table] = self._next_ids.get(table, 0) + 1
        return self._next_ids[table]

    def _row(self, table: str, entity_id: Any) -> Dict[str, Any]:
        row = self._tables[table].get(key_of(entity_id))
        if row is None:
            raise NotFoundError(table, entity_id)
        return row

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(row)
        stored["id"] = self._next_id(table)
        self._tables[table][key_of(stored["id"])] = stored
        return copy.deepcopy(stored)

    def _update(self, table: str, entity_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = self._row(table, entity_id)
        for column, value in row.items():
            if column != "id":
                stored[column] = copy.deepcopy(value)
        return copy.deepcopy(stored)

    def _links_for_form(self, form_type_id: Any) -> List[Dict[str, Any]]:
        wanted = key_of(form_type_id)
        return [row for row in self._form_fields if key_of(row["form_type_id"]) == wanted]

    def _wide(self, form_row: Dict[str, Any]) -> Dict[str, Any]:
        return copy.deepcopy(
            assemble_form_type(form_row, self._links_for_form(form_row["id"]), self._tables["fields"])
        )

    # ======================================
    # Fields
    # ======================================
    def list_fields(self) -> List[Dict[str, Any]]:
        rows = sorted(self._tables["fields"].values(), key=lambda row: row["name"])
        return copy.deepcopy(rows)

    def get_field(self, field_id: Any) -> Dict[str, Any]:
        return copy.deepcopy(self._row("fields", field_id))

    def insert_field(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("fields", row)

    def update_field(self, field_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("fields", field_id, row)

    def delete_field(self, field_id: Any) -> None:
        self._row("fields", field_id)
        wanted = key_of(field_id)
        if any(key_of(link["field_id"]) == wanted for link in self._form_fields):
            raise StoreError(f"fields row '{field_id}' is still referenced by form_fields")
        del self._tables["fields"][wanted]

    # ======================================
    # Form types
    # ======================================
    def list_form_types(self) -> List[Dict[str, Any]]:
        rows = sorted(self._tables["form_types"].values(), key=lambda row: row["name"])
        return [self._wide(row) for row in rows]

    def get_form_type(self, form_type_id: Any) -> Dict[str, Any]:
        return self._wide(self._row("form_types", form_type_id))

    def insert_form_type(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("form_types", row)

    def update_form_type(self, form_type_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("form_types", form_type_id, row)

    def delete_form_type(self, form_type_id: Any) -> None:
        self._row("form_types", form_type_id)
        if self._links_for_form(form_type_id):
            raise StoreError(f"form_types row '{form_type_id}' is still referenced by form_fields")
        del self._tables["form_types"][key_of(form_type_id)]

    # ======================================
    # form_fields join table
    # ======================================
    def list_form_fields(self, form_type_id: Any) -> List[Dict[str, Any]]:
        links = sorted(self._links_for_form(form_type_id), key=lambda row: row["sort_order"])
        return copy.deepcopy(links)

    def insert_form_fields(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        # Check the whole batch first so a rejected insert writes nothing
        seen = {(key_of(r["form_type_id"]), key_of(r["field_id"])) for r in self._form_fields}
        for row in rows:
            self._row("form_types", row["form_type_id"])
            self._row("fields", row["field_id"])
            pair = (key_of(row["form_type_id"]), key_of(row["field_id"]))
            if pair in seen:
                raise StoreError(f"duplicate form_fields row {pair}")
            seen.add(pair)
        inserted = copy.deepcopy(rows)
        self._form_fields.extend(copy.deepcopy(rows))
        return inserted

    def delete_form_fields(self, form_type_id: Any) -> None:
        wanted = key_of(form_type_id)
        self._form_fields = [
            row for row in self._form_fields if key_of(row["form_type_id"]) != wanted
        ]

    # ======================================
    # Records
    # ======================================
    def list_records(self, form_type_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        rows = list(self._tables["records"].values())
        if form_type_id is not None:
            rows = [row for row in rows if key_of(row["form_type_id"]) == key_of(form_type_id)]
        return copy.deepcopy(sort_records(rows))

    def get_record(self, record_id: Any) -> Dict[str, Any]:
        return copy.deepcopy(self._row("records", record_id))

    def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        self._row("form_types", row["form_type_id"])
        return self._insert("records", row)

    def update_record(self, record_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("records", record_id, row)

    def delete_record(self, record_id: Any) -> None:
        self._row("records", record_id)
        del self._tables["records"][key_of(record_id)]

    # ======================================
    # Snapshot persistence
    # ======================================
    def save(self, path: Optional[str] = None) -> None:
        """
        Write every table to a JSON snapshot.

        Args:
            path: Target file. Defaults to the configured snapshot_path.
        """
        target = Path(path) if path else self.snapshot_path
        if target is None:
            raise StoreError("No snapshot path configured for MemoryStore")
        target.parent.mkdir(parents=True, exist_ok=True)

        snapshot = {
            "fields": list(self._tables["fields"].values()),
            "form_types": list(self._tables["form_types"].values()),
            "form_fields": self._form_fields,
            "records": list(self._tables["records"].values()),
            "next_ids": self._next_ids,
            "saved_at": datetime.now().isoformat(),
            "version": "1.0",
        }
        try:
            with open(target, "w") as f:
                json.dump(snapshot, f, indent=2)
        except OSError as e:
            raise StoreError(f"Could not write snapshot {target}: {e}") from e

        print(f"✓ Saved {len(snapshot['records'])} records to {target}")

    def load(self, path: Optional[str] = None) -> None:
        """
        Replace every table with the contents of a JSON snapshot.

        Args:
            path: Source file. Defaults to the configured snapshot_path.
        """
        source = Path(path) if path else self.snapshot_path
        if source is None or not source.exists():
            print(f"No snapshot file found at {source}")
            return

        try:
            with open(source, "r") as f:
                snapshot = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Could not read snapshot {source}: {e}") from e

        self.clear()
        for table in ("fields", "form_types", "records"):
            for row in snapshot.get(table, []):
                self._tables[table][key_of(row["id"])] = row
        self._form_fields = snapshot.get("form_fields", [])
        self._next_ids = dict(snapshot.get("next_ids", {}))

        print(f"✓ Loaded {len(self._tables['records'])} records from {source}")

    def clear(self) -> None:
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {
            "fields": {},
            "form_types": {},
            "records": {},
        }
        self._form_fields: List[Dict[str, Any]] = []
        self._next_ids: Dict[str, int] = {}
