# ==============================================
# Error Taxonomy
# ==============================================
#
# - ValidationError    → caller data breaks a schema invariant.
#                        Raised before any store mutation.
# - StoreError         → the external store failed (network, constraint,
#                        not-found). Never retried here.
# - InconsistencyError → a multi-step store operation stopped half way
#                        and the compensation step failed as well.
# - DecodeError        → a raw string does not decode for its data type.
#                        Handled by the validator and the engine.
#
# ==============================================

from typing import Optional, Any


class ValidationError(ValueError):
    """Caller-supplied data violates a Field/FormType/Record invariant."""


class StoreError(RuntimeError):
    """The external store rejected or failed an operation."""


class NotFoundError(StoreError):
    """The requested row does not exist in the store."""

    def __init__(self, collection: str, entity_id: Any):
        super().__init__(f"{collection} row '{entity_id}' not found")
        self.collection = collection
        self.entity_id = entity_id


class InconsistencyError(StoreError):
    """
    A multi-step operation was partially applied and could not be undone.

    Attributes:
        operation: Name of the logical operation (e.g. "delete_form_type")
        entity_id: Id of the entity left in a partial state
        detail: Human-readable description of what is left behind
    """

    def __init__(self, operation: str, entity_id: Any, detail: str,
                 cause: Optional[BaseException] = None):
        super().__init__(f"{operation}({entity_id}) left partial state: {detail}")
        self.operation = operation
        self.entity_id = entity_id
        self.detail = detail
        self.cause = cause


class DecodeError(ValueError):
    """A raw record value could not be decoded for its field's data type."""

    def __init__(self, data_type: str, raw: Any, reason: str = ""):
        message = f"cannot decode {raw!r} as {data_type}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.data_type = data_type
        self.raw = raw
