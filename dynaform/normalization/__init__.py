# ==============================================
# TOPIC 2: NORMALIZATION
# ==============================================
#
# This package turns raw record values into typed ones and checks
# record payloads BEFORE they reach the store.
#
# Modules:
# --------
# - value_codec.py       → Decode/encode/format one value per data type
# - record_validator.py  → Validate payloads, create/update/delete records
#
# ==============================================

from .value_codec import ValueCodec, TypedValue, PLACEHOLDER
from .record_validator import RecordValidator, RecordAdapter

__all__ = ["ValueCodec", "TypedValue", "PLACEHOLDER", "RecordValidator", "RecordAdapter"]
