# ==============================================
# TOPIC 1: DYNAMIC SCHEMA
# ==============================================
#
# This package owns the operator-defined schema: typed Fields and
# FormTypes that compose them in a chosen order.
#
# Modules:
# --------
# - models.py          → DataType, Field, FieldRef, FormType, Record
# - field_registry.py  → Validated CRUD over fields
# - form_composer.py   → Validated CRUD over form_types + form_fields
#
# ==============================================

from .models import DataType, Field, FieldRef, FormType, Record, is_unset, key_of
from .field_registry import FieldRegistry, parse_options
from .form_composer import FormComposer, collapse_field_ids

__all__ = [
    "DataType",
    "Field",
    "FieldRef",
    "FormType",
    "Record",
    "key_of",
    "is_unset",
    "FieldRegistry",
    "parse_options",
    "FormComposer",
    "collapse_field_ids",
]
