# ==============================================
# ValueCodec
# ==============================================
#
# PURPOSE:
#   The single place where a raw string stored in Record.data is
#   turned into a typed value for its Field. Both the record
#   validator and the aggregation engine go through decode().
#
# CLASS: TypedValue (frozen dataclass)
# ------------------------------------
#   data_type: DataType, value: str | float | date | time | bool, raw: str
#
# CLASS: ValueCodec
# -----------------
#   - decode(field, raw) -> TypedValue | None
#       None when the value is unset (missing, None, "").
#       Raises DecodeError when the text does not parse.
#
#   - try_decode(field, raw) -> TypedValue | None
#       Same, but malformed values also come back as None.
#
#   - decode_number(raw) -> float | None
#       Lenient numeric read used by sums and summaries.
#
#   - encode(field, value) -> str
#       Python value → stored string (date.isoformat(), "true", ...).
#
#   - format(field, raw) -> str
#       Display text: "-" for unset, Yes/No, thousands separators.
#
# ==============================================

import math
import re
from dataclasses import dataclass
from datetime import date, time, datetime
from typing import Any, Optional

from dynaform.errors import DecodeError
from dynaform.schema.models import DataType, Field, is_unset


PLACEHOLDER = "-"


@dataclass(frozen=True)
class TypedValue:
    """A decoded record value tagged with the data type it was read as."""
    data_type: DataType
    value: Any
    raw: str


class ValueCodec:
    BOOL_TRUE = "true"
    BOOL_FALSE = "false"

    NUMBER_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')
    DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
    TIME_PATTERN = re.compile(r'^\d{2}:\d{2}$')

    @classmethod
    def is_unset(cls, raw: Any) -> bool:
        return is_unset(raw)

    @classmethod
    def decode(cls, field: Field, raw: Any) -> Optional[TypedValue]:
        if cls.is_unset(raw):
            return None

        text = raw if isinstance(raw, str) else str(raw)
        data_type = field.data_type

        if data_type == DataType.NUMBER:
            return TypedValue(data_type, cls._parse_number(text), text)

        if data_type == DataType.DATE:
            stripped = text.strip()
            if not cls.DATE_PATTERN.match(stripped):
                raise DecodeError(data_type.value, raw, "expected YYYY-MM-DD")
            try:
                return TypedValue(data_type, date.fromisoformat(stripped), text)
            except ValueError as e:
                raise DecodeError(data_type.value, raw, str(e)) from e

        if data_type == DataType.TIME:
            stripped = text.strip()
            if not cls.TIME_PATTERN.match(stripped):
                raise DecodeError(data_type.value, raw, "expected HH:MM")
            try:
                parsed = datetime.strptime(stripped, "%H:%M").time()
            except ValueError as e:
                raise DecodeError(data_type.value, raw, str(e)) from e
            return TypedValue(data_type, parsed, text)

        if data_type == DataType.SELECTOR:
            # Literal membership, no trimming or case folding
            if text not in (field.options or []):
                raise DecodeError(data_type.value, raw, "not one of the field options")
            return TypedValue(data_type, text, text)

        if data_type == DataType.BOOLEAN:
            if text == cls.BOOL_TRUE:
                return TypedValue(data_type, True, text)
            if text == cls.BOOL_FALSE:
                return TypedValue(data_type, False, text)
            raise DecodeError(data_type.value, raw, "expected 'true' or 'false'")

        return TypedValue(DataType.TEXT, text, text)

    @classmethod
    def try_decode(cls, field: Field, raw: Any) -> Optional[TypedValue]:
        try:
            return cls.decode(field, raw)
        except DecodeError:
            return None

    @classmethod
    def decode_number(cls, raw: Any) -> Optional[float]:
        if cls.is_unset(raw):
            return None
        try:
            return cls._parse_number(raw if isinstance(raw, str) else str(raw))
        except DecodeError:
            return None

    @classmethod
    def encode(cls, field: Field, value: Any) -> str:
        if value is None:
            return ""
        data_type = field.data_type
        if data_type == DataType.BOOLEAN:
            if isinstance(value, str):
                return value
            return cls.BOOL_TRUE if value else cls.BOOL_FALSE
        if data_type == DataType.DATE and isinstance(value, date):
            return value.isoformat()
        if data_type == DataType.TIME and isinstance(value, time):
            return value.strftime("%H:%M")
        if data_type == DataType.NUMBER and isinstance(value, (int, float)) and not isinstance(value, bool):
            return repr(value) if isinstance(value, float) else str(value)
        return str(value)

    @classmethod
    def format(cls, field: Optional[Field], raw: Any) -> str:
        if cls.is_unset(raw):
            return PLACEHOLDER
        text = raw if isinstance(raw, str) else str(raw)
        if field is None:
            return text
        if field.data_type == DataType.BOOLEAN:
            return "Yes" if text == cls.BOOL_TRUE else "No"
        if field.data_type == DataType.NUMBER:
            number = cls.decode_number(text)
            if number is None:
                return text
            if number.is_integer():
                return f"{int(number):,}"
            return f"{number:,.3f}".rstrip("0").rstrip(".")
        return text

    @classmethod
    def _parse_number(cls, text: str) -> float:
        stripped = text.strip()
        if not cls.NUMBER_PATTERN.match(stripped):
            raise DecodeError(DataType.NUMBER.value, text, "not a decimal number")
        number = float(stripped)
        if not math.isfinite(number):
            raise DecodeError(DataType.NUMBER.value, text, "not finite")
        return number
