# ==============================================
# Store (Abstract Contract)
# ==============================================
#
# PURPOSE:
#   The external data service as seen by the core. Four table-like
#   collections: fields, form_types, records and the join table
#   form_fields(form_type_id, field_id, sort_order).
#
#   Rows are plain dicts. Every backend returns the same shapes:
#
#     field row      {"id", "name", "data_type", "options"}
#     form type row  {"id", "name", "description"}
#     wide form type {"id", "name", "description",
#                     "form_fields": [{"field_id", "sort_order",
#                                      "field": <field row | None>}]}
#     form field row {"form_type_id", "field_id", "sort_order"}
#     record row     {"id", "form_type_id", "data", "created_at"}
#
# CLASS: Store (ABC)
# ------------------
#   Lifecycle:
#     connect() / disconnect() / __enter__ / __exit__
#
#   Fields:
#     list_fields()                 → ordered by name
#     get_field(id), insert_field(row), update_field(id, row), delete_field(id)
#
#   Form types:
#     list_form_types()             → wide rows, ordered by name
#     get_form_type(id)             → one wide row
#     insert_form_type(row), update_form_type(id, row), delete_form_type(id)
#
#   Join table:
#     list_form_fields(form_type_id) → ordered by sort_order
#     insert_form_fields(rows), delete_form_fields(form_type_id)
#
#   Records:
#     list_records(form_type_id=None) → ordered by created_at descending
#     get_record(id), insert_record(row), update_record(id, row), delete_record(id)
#
#   Failures raise StoreError (NotFoundError for missing ids).
#
# ==============================================

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from dynaform.schema.models import key_of


class Store(ABC):
    """Generic CRUD + relational-fetch service backing the workspace."""

    name = "store"

    def connect(self) -> None:
        """Open connections. Backends without connections do nothing."""

    def disconnect(self) -> None:
        """Close connections."""

    # --- fields ---
    @abstractmethod
    def list_fields(self) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_field(self, field_id: Any) -> Dict[str, Any]: ...

    @abstractmethod
    def insert_field(self, row: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def update_field(self, field_id: Any, row: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def delete_field(self, field_id: Any) -> None: ...

    # --- form types ---
    @abstractmethod
    def list_form_types(self) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_form_type(self, form_type_id: Any) -> Dict[str, Any]: ...

    @abstractmethod
    def insert_form_type(self, row: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def update_form_type(self, form_type_id: Any, row: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def delete_form_type(self, form_type_id: Any) -> None: ...

    # --- form_fields join table ---
    @abstractmethod
    def list_form_fields(self, form_type_id: Any) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def insert_form_fields(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def delete_form_fields(self, form_type_id: Any) -> None: ...

    # --- records ---
    @abstractmethod
    def list_records(self, form_type_id: Optional[Any] = None) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def get_record(self, record_id: Any) -> Dict[str, Any]: ...

    @abstractmethod
    def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def update_record(self, record_id: Any, row: Dict[str, Any]) -> Dict[str, Any]: ...

    @abstractmethod
    def delete_record(self, record_id: Any) -> None: ...

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()


def assemble_form_type(
    form_row: Dict[str, Any],
    link_rows: List[Dict[str, Any]],
    fields_by_key: Dict[str, Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Build a wide form type row from its join rows and the field table.

    Args:
        form_row: The plain form_types row
        link_rows: form_fields rows belonging to this form type
        fields_by_key: field rows keyed by key_of(id)

    Returns:
        Wide row with "form_fields" sorted by sort_order
    """
    links = sorted(link_rows, key=lambda row: row["sort_order"])
    return {
        "id": form_row["id"],
        "name": form_row["name"],
        "description": form_row.get("description"),
        "form_fields": [
            {
                "field_id": link["field_id"],
                "sort_order": link["sort_order"],
                "field": fields_by_key.get(key_of(link["field_id"])),
            }
            for link in links
        ],
    }


def sort_records(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest first by created_at (ISO-8601 strings sort chronologically)."""
    return sorted(rows, key=lambda row: row.get("created_at") or "", reverse=True)
