"""Lookup target resolution.

Decides which entity type an external-reference search should query for a
field. A configured target always wins. Otherwise the target is derived from
the field name by convention (``AccountId`` -> ``Account``,
``OwnerId`` -> ``User``), which is a best-effort hint and not a verified
foreign key.
"""

from typing import Any, Mapping, Optional, Union

from recordview.models.field_descriptor import FieldDescriptor

USER_ENTITY_TYPE = "User"
OWNER_BASE_NAME = "owner"
ID_SUFFIX = "id"


def derive_lookup_target(field_name: Optional[str]) -> str:
    """Derive a lookup target from a (possibly qualified) field name."""
    name = (field_name or "").strip()
    if "." in name:
        name = name[name.rindex(".") + 1:].strip()
    if len(name) > 2 and name.lower().endswith(ID_SUFFIX):
        base = name[: -len(ID_SUFFIX)]
        if base.lower() == OWNER_BASE_NAME:
            return USER_ENTITY_TYPE
        return base
    return ""


def resolve_lookup_target(field: Union[FieldDescriptor, Mapping[str, Any], None]) -> str:
    """Return the entity type to search for ``field``, or ``""`` if none."""
    if field is None:
        return ""
    if isinstance(field, FieldDescriptor):
        configured = field.lookup_target_type
        field_name = field.field_name
    else:
        configured = field.get("lookupObjectApiName", field.get("LookupObjectApiName"))
        field_name = field.get("fieldName", field.get("FieldName"))

    if configured is not None and str(configured).strip():
        return str(configured).strip()

    return derive_lookup_target(field_name)


def lookup_placeholder(field: FieldDescriptor) -> str:
    """Placeholder text for a lookup input."""
    target = resolve_lookup_target(field)
    if target:
        return f"Type to search {target} by name..."
    return "Type to search by name..."
