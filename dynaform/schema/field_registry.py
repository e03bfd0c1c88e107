# ==============================================
# FieldRegistry
# ==============================================
#
# PURPOSE:
#   Owns Field definitions: create, update, delete and list them
#   through the store, validating every definition first.
#
# CLASS: FieldRegistry
# --------------------
#   Constructor:
#   ------------
#   - __init__(store, reference_guard=None)
#       reference_guard(field_id) -> list[str] returns the names of
#       form types still using a field; deletion is refused while
#       that list is non-empty. The FormWorkspace wires it to
#       FormComposer.forms_using_field.
#
#   Methods:
#   --------
#   - list() -> list[Field]                    (ordered by name)
#   - get(field_id) -> Field
#   - create(name, data_type, options=None) -> Field
#   - update(field_id, patch: dict) -> Field   (patch merged, then validated)
#   - delete(field_id) -> None
#
#   Helpers:
#   --------
#   - parse_options(options) -> list[str] | None
#       "a, b,,c" → ["a", "b", "c"]; order kept, duplicates kept.
#   - build_field_row(name, data_type, options) -> dict
#       Validated row ready for the store.
#
# ==============================================

from typing import Any, Callable, Dict, List, Optional, Union

from dynaform.errors import ValidationError
from .models import DataType, Field, is_unset


OptionsInput = Union[None, str, List[str]]


def parse_options(options: OptionsInput) -> Optional[List[str]]:
    """
    Turn the operator's option input into an ordered list.

    Args:
        options: One comma-delimited string or a list of strings

    Returns:
        Trimmed, non-empty entries in their original order, or None
        when nothing is left.
    """
    if options is None:
        return None
    if isinstance(options, str):
        parts = options.split(",")
    else:
        parts = [str(option) for option in options]
    cleaned = [part.strip() for part in parts if part.strip()]
    return cleaned or None


def build_field_row(name: Any, data_type: Any, options: OptionsInput = None) -> Dict[str, Any]:
    """
    Validate a Field definition and return the row to persist.

    Raises:
        ValidationError: empty name, unknown data type, or a selector
            without options
    """
    name = str(name).strip() if name is not None else ""
    if not name:
        raise ValidationError("Field name must not be empty")

    if isinstance(data_type, DataType):
        kind = data_type
    else:
        try:
            kind = DataType(str(data_type).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown data type '{data_type}', expected one of {', '.join(DataType.values())}"
            ) from None

    parsed = parse_options(options) if kind == DataType.SELECTOR else None
    if kind == DataType.SELECTOR and not parsed:
        raise ValidationError(f"Selector field '{name}' needs at least one option")

    return {"name": name, "data_type": kind.value, "options": parsed}


class FieldRegistry:
    """Validated CRUD over the `fields` collection."""

    def __init__(self, store, reference_guard: Optional[Callable[[Any], List[str]]] = None):
        self.store = store
        self.reference_guard = reference_guard

    def list(self) -> List[Field]:
        return [Field.from_dict(row) for row in self.store.list_fields()]

    def get(self, field_id: Any) -> Field:
        return Field.from_dict(self.store.get_field(field_id))

    def index(self) -> Dict[str, Field]:
        """All fields keyed by key_of(id)."""
        return {field.key: field for field in self.list()}

    def create(self, name: str, data_type: Union[str, DataType], options: OptionsInput = None) -> Field:
        row = build_field_row(name, data_type, options)
        return Field.from_dict(self.store.insert_field(row))

    def update(self, field_id: Any, patch: Dict[str, Any]) -> Field:
        """
        Apply a partial change to a Field.

        The patch is merged over the stored definition and the merged
        result is validated as a whole. Changing the data type of a
        field that already holds recorded values is refused.

        Args:
            field_id: Field to change
            patch: Any of "name", "data_type", "options"

        Returns:
            The stored Field after the update
        """
        unknown = set(patch) - {"name", "data_type", "options"}
        if unknown:
            raise ValidationError(f"Cannot update field attribute(s): {', '.join(sorted(unknown))}")

        current = self.get(field_id)
        merged_options = patch.get("options", current.options)
        row = build_field_row(
            patch.get("name", current.name),
            patch.get("data_type", current.data_type),
            merged_options,
        )

        if row["data_type"] != current.data_type.value and self._has_recorded_values(current):
            raise ValidationError(
                f"Field '{current.name}' already has recorded values; "
                f"its data type cannot change from {current.data_type.value} to {row['data_type']}"
            )

        return Field.from_dict(self.store.update_field(field_id, row))

    def delete(self, field_id: Any) -> None:
        if self.reference_guard is not None:
            users = self.reference_guard(field_id)
            if users:
                raise ValidationError(
                    f"Field '{field_id}' is still used by form type(s): {', '.join(users)}"
                )
        self.store.delete_field(field_id)

    def _has_recorded_values(self, field: Field) -> bool:
        for row in self.store.list_records():
            if not is_unset((row.get("data") or {}).get(field.key)):
                return True
        return False
