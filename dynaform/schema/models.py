# ==============================================
# Schema Models (Data Classes)
# ==============================================
#
# PURPOSE:
#   The dynamic schema as plain data: Fields, FormTypes (ordered
#   FieldRefs) and Records. These are what the registry/composer
#   produce, what the validator checks payloads against, and what
#   the aggregation engine reads.
#
# ENUMS:
# ------
# - DataType(Enum): TEXT, NUMBER, DATE, TIME, SELECTOR, BOOLEAN
#
# CLASSES:
# --------
# - Field      → id, name, data_type, options
# - FieldRef   → field_id, sort_order, field (resolved Field or None)
# - FormType   → id, name, description, fields: list[FieldRef]
# - Record     → id, form_type_id, data: dict[str, str], created_at
#
#   Every class has:
#     - to_dict() -> dict             → Row shape used by the stores
#     - from_dict(data) (classmethod) → Build from a store row
#
# ==============================================

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List


class DataType(Enum):
    """
    The six kinds of value a Field can hold.

    Values are the strings persisted in the `fields.data_type` column.
    """
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    SELECTOR = "selector"
    BOOLEAN = "boolean"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


def key_of(entity_id: Any) -> str:
    """Normalize an id to the string form used as a Record.data key."""
    return str(entity_id)


def is_unset(raw: Any) -> bool:
    """Missing, None, empty or whitespace-only values carry no data."""
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


@dataclass
class Field:
    """A named, typed attribute definition available for use in forms."""

    id: Any
    name: str
    data_type: DataType
    options: Optional[List[str]] = None  # Only set for selector fields

    @property
    def key(self) -> str:
        return key_of(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "data_type": self.data_type.value,
            "options": list(self.options) if self.options is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Field":
        options = data.get("options")
        return cls(
            id=data["id"],
            name=data["name"],
            data_type=DataType(data["data_type"]),
            options=list(options) if options else None,
        )


@dataclass
class FieldRef:
    """Ordered association between a FormType and one of its Fields."""

    field_id: Any
    sort_order: int
    field: Optional[Field] = None  # None when the referenced Field is gone

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_id": self.field_id,
            "sort_order": self.sort_order,
            "field": self.field.to_dict() if self.field else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldRef":
        field_row = data.get("field")
        return cls(
            field_id=data["field_id"],
            sort_order=int(data["sort_order"]),
            field=Field.from_dict(field_row) if field_row else None,
        )


@dataclass
class FormType:
    """
    A named, ordered composition of Fields.

    `fields` is always kept sorted by sort_order so iteration order is
    the order the operator chose.
    """

    id: Any
    name: str
    description: Optional[str] = None
    fields: List[FieldRef] = field(default_factory=list)

    def __post_init__(self):
        self.fields = sorted(self.fields, key=lambda ref: ref.sort_order)

    @property
    def field_ids(self) -> List[Any]:
        return [ref.field_id for ref in self.fields]

    @property
    def field_keys(self) -> List[str]:
        return [key_of(ref.field_id) for ref in self.fields]

    def ordered_fields(self) -> List[Field]:
        """Resolved Fields in sort order; dangling refs are skipped."""
        return [ref.field for ref in self.fields if ref.field is not None]

    def find_field(self, field_id: Any) -> Optional[Field]:
        wanted = key_of(field_id)
        for ref in self.fields:
            if ref.field is not None and ref.field.key == wanted:
                return ref.field
        return None

    def lists_field(self, field_id: Any) -> bool:
        return key_of(field_id) in self.field_keys

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "form_fields": [ref.to_dict() for ref in self.fields],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormType":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description"),
            fields=[FieldRef.from_dict(row) for row in data.get("form_fields") or []],
        )


@dataclass
class Record:
    """One captured instance of data for a FormType."""

    id: Any
    form_type_id: Any
    data: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self):
        # JSON object keys are strings; ids may come back as ints
        self.data = {key_of(k): v for k, v in (self.data or {}).items()}

    def raw(self, field_id: Any) -> Optional[str]:
        """Raw stored value at a field id, or None when unset."""
        value = self.data.get(key_of(field_id))
        return None if is_unset(value) else value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "form_type_id": self.form_type_id,
            "data": dict(self.data),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        return cls(
            id=data["id"],
            form_type_id=data["form_type_id"],
            data=dict(data.get("data") or {}),
            created_at=data.get("created_at") or "",
        )
