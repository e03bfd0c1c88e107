# ==============================================
# Record Validation + Store Adapter
# ==============================================
#
# PURPOSE:
#   Check a record payload against the FormType it belongs to and
#   shape it into the row the store persists. Nothing reaches the
#   store until the whole payload passes.
#
# CLASS: RecordValidator
# ----------------------
#   - validate(form_type, data, previous=None) -> dict[str, str]
#       Keys become key_of(field_id). Non-string values are encoded
#       with ValueCodec.encode (True → "true", date → "YYYY-MM-DD").
#       Rejects keys the form does not list (except keys already in
#       `previous`), selector values outside the options and booleans
#       other than "true"/"false". Malformed number/date/time values
#       pass through. All problems are reported in one ValidationError.
#
# CLASS: RecordAdapter
# --------------------
#   - list(form_type_id=None) -> list[Record]   (newest first)
#   - get(record_id) -> Record
#   - create(form_type_id, data) -> Record      (stamps UTC created_at)
#   - update(record_id, data) -> Record         (replaces data only)
#   - delete(record_id) -> None
#
# ==============================================

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dynaform.errors import DecodeError, NotFoundError, ValidationError
from dynaform.schema.models import DataType, FormType, Record, key_of
from .value_codec import ValueCodec


# Malformed values of these types are stored as typed and skipped by aggregation
LENIENT_TYPES = {DataType.NUMBER, DataType.DATE, DataType.TIME}


class RecordValidator:
    """Checks a record payload against the FormType it belongs to."""

    def __init__(self, codec: Optional[ValueCodec] = None):
        self.codec = codec or ValueCodec()

    def validate(self, form_type: FormType, data: Dict[str, Any],
                 previous: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ValidationError("Record data must be a mapping of field id to value")

        previous_keys = {key_of(k) for k in (previous or {})}
        cleaned = {}
        problems = []

        for raw_key, value in data.items():
            key = key_of(raw_key)

            if not form_type.lists_field(key):
                if key in previous_keys:
                    # Orphan of an earlier schema version, kept as text
                    cleaned[key] = value if value is None or isinstance(value, str) else str(value)
                    continue
                problems.append(f"field '{key}' is not part of form type '{form_type.name}'")
                continue

            field = form_type.find_field(key)
            if value is not None and not isinstance(value, str):
                value = self.codec.encode(field, value) if field is not None else str(value)
            if field is not None:
                try:
                    self.codec.decode(field, value)
                except DecodeError as e:
                    if field.data_type not in LENIENT_TYPES:
                        problems.append(f"{field.name}: {e}")
                        continue
            cleaned[key] = value

        if problems:
            raise ValidationError("; ".join(problems))
        return cleaned


class RecordAdapter:
    """
    Validates and shapes Record payloads before they reach the store.

    create() assigns created_at; update() replaces `data` wholesale and
    never touches form_type_id or created_at.
    """

    def __init__(self, store, validator: Optional[RecordValidator] = None):
        self.store = store
        self.validator = validator or RecordValidator()

    def _form_type(self, form_type_id: Any) -> FormType:
        try:
            return FormType.from_dict(self.store.get_form_type(form_type_id))
        except NotFoundError:
            raise ValidationError(f"Form type '{form_type_id}' does not exist") from None

    def list(self, form_type_id: Optional[Any] = None) -> List[Record]:
        return [Record.from_dict(row) for row in self.store.list_records(form_type_id)]

    def get(self, record_id: Any) -> Record:
        return Record.from_dict(self.store.get_record(record_id))

    def create(self, form_type_id: Any, data: Dict[str, Any]) -> Record:
        form_type = self._form_type(form_type_id)
        cleaned = self.validator.validate(form_type, data)
        row = self._inject_timestamp({
            "form_type_id": form_type.id,
            "data": cleaned,
        })
        return Record.from_dict(self.store.insert_record(row))

    def update(self, record_id: Any, data: Dict[str, Any]) -> Record:
        current = self.get(record_id)
        form_type = self._form_type(current.form_type_id)
        cleaned = self.validator.validate(form_type, data, previous=current.data)
        return Record.from_dict(self.store.update_record(record_id, {"data": cleaned}))

    def delete(self, record_id: Any) -> None:
        self.store.delete_record(record_id)

    def _inject_timestamp(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row["created_at"] = datetime.now(timezone.utc).isoformat()
        return row
