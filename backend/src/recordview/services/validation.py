"""Form validation rules."""

import logging
import re
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from recordview.core.errors import FieldValidationError
from recordview.models.field_descriptor import FieldDescriptor, FieldType
from recordview.services.change_set import is_empty_value, to_text, unwrap_value

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
NON_DIGITS = re.compile(r"\D")
MIN_PHONE_DIGITS = 10

REQUIRED_MESSAGE = "This field is required."


def is_valid_email(value: Any) -> bool:
    """Check a conventional ``local@domain.tld`` address. Empty is valid."""
    text = to_text(value)
    if not text:
        return True
    return EMAIL_REGEX.match(text) is not None


def is_valid_phone(value: Any) -> bool:
    """Check that a phone number has at least ten digits. Empty is valid."""
    text = to_text(value)
    if not text:
        return True
    return len(NON_DIGITS.sub("", text)) >= MIN_PHONE_DIGITS


class ValidationResult(BaseModel):
    """Outcome of validating a working copy."""

    valid: bool
    message: str = ""
    field_name: Optional[str] = None
    rule: Optional[str] = None
    field_errors: Dict[str, str] = Field(default_factory=dict)

    def raise_for_errors(self, descriptors: Sequence[FieldDescriptor] = ()) -> None:
        if self.valid:
            return
        label = next((d.label for d in descriptors if d.field_name == self.field_name), self.field_name)
        raise FieldValidationError(
            message=self.message,
            field_name=self.field_name,
            label=label,
            rule=self.rule,
            field_errors=self.field_errors,
        )


def validate_fields(descriptors: Sequence[FieldDescriptor], working: Mapping[str, Any]) -> ValidationResult:
    """Validate ``working`` against ``descriptors`` without mutating it.

    Requiredness is checked on every field so each can be flagged inline.
    Format checks stop at the first bad email or phone value. The overall
    message names the first failing field and rule.
    """
    field_errors: Dict[str, str] = {}
    first: Optional[tuple] = None
    format_failed = False

    for descriptor in descriptors:
        value = unwrap_value(working.get(descriptor.field_name))
        label = descriptor.label or descriptor.field_name

        if descriptor.required and is_empty_value(value):
            if descriptor.is_external_lookup:
                rule, message = "lookup-required", f"{label} requires a selected value."
            else:
                rule, message = "required", f"{label} is required."
            field_errors[descriptor.field_name] = REQUIRED_MESSAGE
            if first is None:
                first = (descriptor.field_name, rule, message)
            continue

        if format_failed:
            continue
        if descriptor.type == FieldType.EMAIL and not is_valid_email(value):
            message = f"Invalid email format for {label}."
            field_errors[descriptor.field_name] = message
            first = first or (descriptor.field_name, "email", message)
            format_failed = True
        elif descriptor.type == FieldType.PHONE and not is_valid_phone(value):
            message = f"Invalid phone format for {label}."
            field_errors[descriptor.field_name] = message
            first = first or (descriptor.field_name, "phone", message)
            format_failed = True

    if first is None:
        return ValidationResult(valid=True)

    field_name, rule, message = first
    logger.info(f"Validation failed on {field_name} ({rule})")
    return ValidationResult(
        valid=False,
        message=message,
        field_name=field_name,
        rule=rule,
        field_errors=field_errors,
    )
