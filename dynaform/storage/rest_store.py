# ==============================================
# RestStore
# ==============================================
#
# PURPOSE:
#   Store contract over a hosted REST data service speaking the
#   PostgREST dialect (as exposed by Supabase under /rest/v1).
#
#   Request shapes:
#     GET    /rest/v1/<table>?select=*&order=name.asc
#     GET    /rest/v1/form_types?select=id,name,description,
#                form_fields(field_id,sort_order,fields(*))
#     POST   /rest/v1/<table>              body: [row]
#     PATCH  /rest/v1/<table>?id=eq.<id>   body: row
#     DELETE /rest/v1/<table>?id=eq.<id>
#
#   Writes send `Prefer: return=representation` so the service
#   answers with the affected rows; an empty answer to an id-scoped
#   PATCH/DELETE means the row does not exist.
#
# CLASS: RestStore
# ----------------
#   - __init__(url, api_key=None, timeout_seconds=10.0, session=None)
#       `session` is any object with a requests.Session-like
#       request() method (tests pass a fake).
#
# ==============================================

from typing import Any, Dict, List, Optional

import requests

from dynaform.errors import NotFoundError, StoreError
from .base import Store


WIDE_FORM_SELECT = "id,name,description,form_fields(field_id,sort_order,fields(*))"


class RestStore(Store):
    name = "rest"

    def __init__(self, url: str, api_key: Optional[str] = None,
                 timeout_seconds: float = 10.0, session=None):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.session = session
        self._owns_session = session is None

    def connect(self) -> None:
        if self.session is None:
            self.session = requests.Session()
        print(f"✓ Using REST data service at {self.base_url}")

    def disconnect(self) -> None:
        if self.session is not None and self._owns_session:
            self.session.close()
            self.session = None

    # ======================================
    # Internal helpers
    # ======================================
    def _headers(self, write: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        if write:
            headers["Prefer"] = "return=representation"
        return headers

    def _request(self, method: str, table: str, params: Optional[Dict[str, str]] = None,
                 body: Any = None) -> List[Dict[str, Any]]:
        if self.session is None:
            raise StoreError("REST store is not connected")
        try:
            response = self.session.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=body,
                headers=self._headers(write=method != "GET"),
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise StoreError(f"{method} {table} failed: {e}") from e

        if response.status_code == 204 or not response.content:
            return []
        try:
            payload = response.json()
        except ValueError as e:
            raise StoreError(f"{method} {table} returned invalid JSON") from e
        return payload if isinstance(payload, list) else [payload]

    @staticmethod
    def _eq(value: Any) -> str:
        return f"eq.{value}"

    def _one(self, table: str, entity_id: Any, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not rows:
            raise NotFoundError(table, entity_id)
        return rows[0]

    def _get(self, table: str, entity_id: Any) -> Dict[str, Any]:
        rows = self._request("GET", table, {"select": "*", "id": self._eq(entity_id)})
        return self._one(table, entity_id, rows)

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        body = {k: v for k, v in row.items() if k != "id"}
        return self._one(table, None, self._request("POST", table, body=[body]))

    def _update(self, table: str, entity_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        body = {k: v for k, v in row.items() if k != "id"}
        rows = self._request("PATCH", table, {"id": self._eq(entity_id)}, body=body)
        return self._one(table, entity_id, rows)

    def _delete(self, table: str, entity_id: Any) -> None:
        rows = self._request("DELETE", table, {"id": self._eq(entity_id)})
        self._one(table, entity_id, rows)

    @staticmethod
    def _canonical_form(row: Dict[str, Any]) -> Dict[str, Any]:
        # PostgREST nests the joined field under the table name "fields"
        links = sorted(row.get("form_fields") or [], key=lambda link: link["sort_order"])
        return {
            "id": row["id"],
            "name": row["name"],
            "description": row.get("description"),
            "form_fields": [
                {
                    "field_id": link.get("field_id", (link.get("fields") or {}).get("id")),
                    "sort_order": link["sort_order"],
                    "field": link.get("fields"),
                }
                for link in links
            ],
        }

    # ======================================
    # Fields
    # ======================================
    def list_fields(self) -> List[Dict[str, Any]]:
        return self._request("GET", "fields", {"select": "*", "order": "name.asc"})

    def get_field(self, field_id: Any) -> Dict[str, Any]:
        return self._get("fields", field_id)

    def insert_field(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("fields", row)

    def update_field(self, field_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("fields", field_id, row)

    def delete_field(self, field_id: Any) -> None:
        self._delete("fields", field_id)

    # ======================================
    # Form types
    # ======================================
    def list_form_types(self) -> List[Dict[str, Any]]:
        rows = self._request("GET", "form_types", {"select": WIDE_FORM_SELECT, "order": "name.asc"})
        return [self._canonical_form(row) for row in rows]

    def get_form_type(self, form_type_id: Any) -> Dict[str, Any]:
        rows = self._request(
            "GET", "form_types", {"select": WIDE_FORM_SELECT, "id": self._eq(form_type_id)}
        )
        return self._canonical_form(self._one("form_types", form_type_id, rows))

    def insert_form_type(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("form_types", row)

    def update_form_type(self, form_type_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("form_types", form_type_id, row)

    def delete_form_type(self, form_type_id: Any) -> None:
        self._delete("form_types", form_type_id)

    # ======================================
    # form_fields join table
    # ======================================
    def list_form_fields(self, form_type_id: Any) -> List[Dict[str, Any]]:
        return self._request(
            "GET", "form_fields",
            {"select": "form_type_id,field_id,sort_order",
             "form_type_id": self._eq(form_type_id),
             "order": "sort_order.asc"},
        )

    def insert_form_fields(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        return self._request("POST", "form_fields", body=rows)

    def delete_form_fields(self, form_type_id: Any) -> None:
        self._request("DELETE", "form_fields", {"form_type_id": self._eq(form_type_id)})

    # ======================================
    # Records
    # ======================================
    def list_records(self, form_type_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        params = {"select": "*", "order": "created_at.desc"}
        if form_type_id is not None:
            params["form_type_id"] = self._eq(form_type_id)
        return self._request("GET", "records", params)

    def get_record(self, record_id: Any) -> Dict[str, Any]:
        return self._get("records", record_id)

    def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("records", row)

    def update_record(self, record_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("records", record_id, row)

    def delete_record(self, record_id: Any) -> None:
        self._delete("records", record_id)
