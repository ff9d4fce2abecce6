"""Form projection of an edit session: descriptor and value pairs."""

import math
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from recordview.models.edit_session import EditSession
from recordview.models.field_descriptor import FieldDescriptor, FieldType, PicklistOption
from recordview.services.change_set import parse_calendar_date, to_text, unwrap_value
from recordview.services.lookup_resolver import lookup_placeholder


class FormField(BaseModel):
    """One field of the form as the UI layer renders it."""

    descriptor: FieldDescriptor
    field_name: str
    label: str
    value: str
    input_type: str
    required: bool
    is_picklist: bool
    is_external_lookup: bool
    picklist_options: List[PicklistOption] = Field(default_factory=list)
    lookup_options: List[PicklistOption] = Field(default_factory=list)
    lookup_input_value: str = ""
    lookup_dropdown_open: bool = False
    lookup_has_selection: bool = False
    lookup_placeholder: Optional[str] = None
    error: Optional[str] = None


def display_value(descriptor: FieldDescriptor, raw: Any) -> str:
    value = unwrap_value(raw)
    if descriptor.type == FieldType.DATE and value:
        parsed = parse_calendar_date(to_text(value))
        if parsed is not None:
            return parsed.isoformat()
    if value is None:
        return ""
    if isinstance(value, bool):
        return to_text(value)
    return str(value)


def build_form_fields(session: EditSession) -> List[FormField]:
    """Pair each descriptor with its current working value."""
    fields = []
    for descriptor in session.descriptors:
        field_name = descriptor.field_name
        value = display_value(descriptor, session.working.get(field_name))
        form_field = FormField(
            descriptor=descriptor,
            field_name=field_name,
            label=descriptor.label,
            value=value,
            input_type=descriptor.input_type,
            required=descriptor.required,
            is_picklist=descriptor.is_picklist,
            is_external_lookup=descriptor.is_external_lookup,
            picklist_options=list(descriptor.picklist_options),
            error=session.field_errors.get(field_name),
        )
        if descriptor.is_external_lookup:
            state = session.lookup_state.get(field_name)
            has_selection = value != ""
            selected_label = state.selected_label if state else None
            search_term = state.search_term if state else ""
            form_field.lookup_has_selection = has_selection
            form_field.lookup_input_value = (
                selected_label if has_selection and selected_label else search_term
            )
            form_field.lookup_dropdown_open = bool(state and state.dropdown_open)
            form_field.lookup_options = list(state.options) if state else []
            form_field.lookup_placeholder = lookup_placeholder(descriptor)
        fields.append(form_field)
    return fields


def split_columns(fields: List[FormField]) -> tuple:
    """Split form fields into a left and right column, left gets the extra one."""
    middle = math.ceil(len(fields) / 2)
    return fields[:middle], fields[middle:]


def form_title(session: EditSession, name_field: str) -> str:
    if session.is_edit_mode:
        name = session.working.get(name_field) or session.original.get(name_field)
        return str(name) if name else "Record"
    return f"New {session.object_type or 'Record'}"
