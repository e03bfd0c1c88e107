# ==============================================
# FormComposer
# ==============================================
#
# PURPOSE:
#   Owns FormType definitions: ordered selections of Fields stored as
#   a form_types row plus one form_fields row per selected field.
#
# ORDERING RULE:
#   sort_order = 0-based position in the field_ids argument after
#   collapsing repeated ids onto their first occurrence:
#       [a, b, a, c] → a:0, b:1, c:2
#
# MULTI-STEP WRITES (store has no transactions):
#   create  : insert form_types row → insert form_fields rows
#             on failure: delete the new form_types row
#   update  : update form_types row → delete form_fields → insert new
#             on failure: restore previous row and previous form_fields
#   delete  : delete form_fields → delete form_types row
#             on failure: re-insert the removed form_fields
#
#   If the store call fails and compensation succeeds, the original
#   StoreError is re-raised. If compensation also fails,
#   InconsistencyError is raised describing what is left behind.
#
# CLASS: FormComposer
# -------------------
#   - __init__(store, field_registry: FieldRegistry)
#   - list() -> list[FormType]
#   - get(form_type_id) -> FormType
#   - create(name, description=None, field_ids=()) -> FormType
#   - update(form_type_id, name, description=None, field_ids=()) -> None
#   - delete(form_type_id) -> None
#   - forms_using_field(field_id) -> list[str]
#
# ==============================================

from typing import Any, Dict, Iterable, List, Optional

from dynaform.errors import InconsistencyError, StoreError, ValidationError
from .field_registry import FieldRegistry
from .models import FormType, key_of


def collapse_field_ids(field_ids: Iterable[Any]) -> List[Any]:
    """Drop repeated ids, keeping each id at its first position."""
    seen = set()
    ordered = []
    for field_id in field_ids:
        key = key_of(field_id)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(field_id)
    return ordered


class FormComposer:
    """Validated CRUD over form_types + form_fields."""

    def __init__(self, store, field_registry: FieldRegistry):
        self.store = store
        self.field_registry = field_registry

    # ======================================
    # Reads
    # ======================================
    def list(self) -> List[FormType]:
        return [FormType.from_dict(row) for row in self.store.list_form_types()]

    def get(self, form_type_id: Any) -> FormType:
        return FormType.from_dict(self.store.get_form_type(form_type_id))

    def forms_using_field(self, field_id: Any) -> List[str]:
        """Names of the form types whose field list contains field_id."""
        return [form.name for form in self.list() if form.lists_field(field_id)]

    # ======================================
    # Validation
    # ======================================
    def _validate(self, name: Any, description: Optional[str], field_ids: Iterable[Any]) -> Dict[str, Any]:
        name = str(name).strip() if name is not None else ""
        if not name:
            raise ValidationError("Form type name must not be empty")

        ordered = collapse_field_ids(field_ids or [])
        if not ordered:
            raise ValidationError(f"Form type '{name}' must include at least one field")

        known = self.field_registry.index()
        missing = [str(field_id) for field_id in ordered if key_of(field_id) not in known]
        if missing:
            raise ValidationError(f"Unknown field id(s): {', '.join(missing)}")

        # Store the ids as the registry knows them (int vs str)
        resolved = [known[key_of(field_id)].id for field_id in ordered]

        if description is not None:
            description = str(description).strip() or None
        return {"row": {"name": name, "description": description}, "field_ids": resolved}

    @staticmethod
    def _link_rows(form_type_id: Any, field_ids: List[Any]) -> List[Dict[str, Any]]:
        return [
            {"form_type_id": form_type_id, "field_id": field_id, "sort_order": index}
            for index, field_id in enumerate(field_ids)
        ]

    # ======================================
    # Writes
    # ======================================
    def create(self, name: str, description: Optional[str] = None,
               field_ids: Iterable[Any] = ()) -> FormType:
        checked = self._validate(name, description, field_ids)

        created = self.store.insert_form_type(checked["row"])
        form_type_id = created["id"]
        try:
            self.store.insert_form_fields(self._link_rows(form_type_id, checked["field_ids"]))
        except StoreError as error:
            print(f"⚠ Associating fields with form type {form_type_id} failed, rolling back")
            try:
                self.store.delete_form_fields(form_type_id)
                self.store.delete_form_type(form_type_id)
            except StoreError as rollback_error:
                raise InconsistencyError(
                    "create_form_type", form_type_id,
                    "form type row exists without its fields", cause=error,
                ) from rollback_error
            raise

        return self.get(form_type_id)

    def update(self, form_type_id: Any, name: str, description: Optional[str] = None,
               field_ids: Iterable[Any] = ()) -> None:
        """
        Replace a form type's name, description and entire field list.

        This is not a merge: the stored field list becomes exactly
        `field_ids`. Records keep whatever keys they already hold.
        """
        checked = self._validate(name, description, field_ids)

        previous = self.get(form_type_id)
        previous_links = self.store.list_form_fields(form_type_id)

        self.store.update_form_type(form_type_id, checked["row"])
        try:
            self.store.delete_form_fields(form_type_id)
            self.store.insert_form_fields(self._link_rows(form_type_id, checked["field_ids"]))
        except StoreError as error:
            print(f"⚠ Re-associating fields of form type {form_type_id} failed, restoring previous schema")
            try:
                self.store.delete_form_fields(form_type_id)
                self.store.insert_form_fields(previous_links)
                self.store.update_form_type(
                    form_type_id, {"name": previous.name, "description": previous.description}
                )
            except StoreError as restore_error:
                raise InconsistencyError(
                    "update_form_type", form_type_id,
                    "field list could not be replaced or restored", cause=error,
                ) from restore_error
            raise

    def delete(self, form_type_id: Any) -> None:
        """
        Remove a form type and all of its field associations.

        Join rows go first; the form type row is removed only once the
        store reports none are left.
        """
        previous_links = self.store.list_form_fields(form_type_id)

        self.store.delete_form_fields(form_type_id)
        try:
            if self.store.list_form_fields(form_type_id):
                raise StoreError(f"form_fields rows for form type {form_type_id} survived deletion")
            self.store.delete_form_type(form_type_id)
        except StoreError as error:
            print(f"⚠ Deleting form type {form_type_id} failed, restoring its fields")
            try:
                self.store.delete_form_fields(form_type_id)
                self.store.insert_form_fields(previous_links)
            except StoreError as restore_error:
                raise InconsistencyError(
                    "delete_form_type", form_type_id,
                    "form type row exists with zero fields", cause=error,
                ) from restore_error
            raise
