"""Error taxonomy for the record view engine.

Every error carries a user-facing ``message``. None of them is fatal: the
viewer catches them inside its intent handlers and turns them into a state
transition plus a visible message.
"""

from typing import Dict, Optional


class RecordViewError(Exception):
    """Base class for all record view errors."""

    default_message = "An error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(RecordViewError):
    """No fields are configured for an object type."""

    def __init__(self, object_type: str, purpose: str = "table"):
        self.object_type = object_type
        self.purpose = purpose
        super().__init__(f"No {purpose} fields are configured for {object_type}.")


class FieldValidationError(RecordViewError):
    """A user-correctable problem with one or more working values."""

    default_message = "Please fix validation errors before saving."

    def __init__(
        self,
        message: Optional[str] = None,
        field_name: Optional[str] = None,
        label: Optional[str] = None,
        rule: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ):
        self.field_name = field_name
        self.label = label
        self.rule = rule
        self.field_errors = dict(field_errors or {})
        super().__init__(message)


class NoChangesError(RecordViewError):
    """An edit was submitted with an empty change-set."""

    default_message = "No fields were changed."


class TransportError(RecordViewError):
    """Any failure reported by the data access collaborator."""

    @classmethod
    def from_exception(cls, error: BaseException, fallback: str) -> "TransportError":
        """Build a transport error with the best available message."""
        if isinstance(error, RecordViewError):
            return cls(error.message or fallback)
        message = str(error).strip()
        return cls(message or fallback)


class LookupSearchError(RecordViewError):
    """A lookup search failed. Always degraded to an empty option list."""

    default_message = "Lookup search failed."


class SessionStateError(RecordViewError):
    """An intent was issued in a state that does not accept it."""
