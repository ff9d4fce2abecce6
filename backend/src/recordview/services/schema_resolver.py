"""Field schema resolution.

Turns raw column / field configuration entries into normalized, ordered
``FieldDescriptor`` sequences, and builds the table column model from them.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from recordview.models.field_descriptor import (
    FieldDescriptor,
    FieldType,
    FormPurpose,
    PicklistOption,
)
from recordview.models.table_view import ROW_NUMBER_FIELD, RowAction, TableColumn

logger = logging.getLogger(__name__)

TYPE_ALIASES: Dict[str, FieldType] = {
    "string": FieldType.TEXT,
    "textarea": FieldType.TEXT,
    "url": FieldType.TEXT,
    "tel": FieldType.PHONE,
    "datetime": FieldType.DATE,
    "currency": FieldType.NUMBER,
    "double": FieldType.NUMBER,
    "integer": FieldType.NUMBER,
    "int": FieldType.NUMBER,
    "percent": FieldType.NUMBER,
    "checkbox": FieldType.BOOLEAN,
    "bool": FieldType.BOOLEAN,
    "lookup": FieldType.LOOKUP_EXTERNAL,
    "external-lookup": FieldType.LOOKUP_EXTERNAL,
}

ROW_ACTIONS = [RowAction(label="Edit", name="edit"), RowAction(label="Delete", name="delete")]
VIEW_RECORD_ACTION = "viewRecord"


class RawFieldConfig(BaseModel):
    """One configuration entry as delivered by the configuration store.

    Entries arrive with inconsistent key casing, so every attribute accepts
    the camelCase and PascalCase spellings.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    field_name: str = Field(
        default="", validation_alias=AliasChoices("fieldName", "FieldName", "field_name")
    )
    label: Optional[str] = Field(default=None, validation_alias=AliasChoices("label", "Label"))
    type: Optional[str] = Field(default=None, validation_alias=AliasChoices("type", "Type"))
    order: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("order", "Order", "sortOrder", "SortOrder")
    )
    required: bool = Field(default=False, validation_alias=AliasChoices("required", "Required"))
    sortable: bool = Field(default=False, validation_alias=AliasChoices("sortable", "Sortable"))
    is_link: bool = Field(default=False, validation_alias=AliasChoices("isLink", "IsLink", "is_link"))
    is_external_lookup: bool = Field(
        default=False,
        validation_alias=AliasChoices("isExternalLookup", "IsExternalLookup", "is_external_lookup"),
    )
    lookup_target_type: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "lookupObjectApiName", "LookupObjectApiName", "lookupTargetType", "lookup_target_type"
        ),
    )
    options: List[PicklistOption] = Field(
        default_factory=list, validation_alias=AliasChoices("options", "Options", "picklistOptions")
    )

    @field_validator("field_name", mode="before")
    @classmethod
    def strip_field_name(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("label", "type", "lookup_target_type", mode="before")
    @classmethod
    def scalar_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (Mapping, list, tuple, set)):
            return None
        return str(value)

    @field_validator("order", mode="before")
    @classmethod
    def lenient_order(cls, value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None

    @field_validator("required", "sortable", "is_link", "is_external_lookup", mode="before")
    @classmethod
    def strict_flag(cls, value: Any) -> bool:
        return value is True or (isinstance(value, str) and value.strip().lower() == "true")

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, value: Any) -> List[Dict[str, str]]:
        if not value or not isinstance(value, (list, tuple)):
            return []
        options = []
        for option in value:
            if isinstance(option, Mapping):
                raw_value = option.get("value", option.get("Value"))
                raw_label = option.get("label", option.get("Label"))
            else:
                raw_value, raw_label = option, None
            if raw_value is None:
                continue
            options.append({"value": str(raw_value), "label": str(raw_label if raw_label is not None else raw_value)})
        return options


def resolve_field_type(raw_type: Optional[str], is_external_lookup: bool = False) -> FieldType:
    """Map a configured type string onto a ``FieldType``. Unknown means text."""
    if is_external_lookup:
        return FieldType.LOOKUP_EXTERNAL
    name = (raw_type or "").strip().lower()
    if not name:
        return FieldType.TEXT
    try:
        return FieldType(name)
    except ValueError:
        return TYPE_ALIASES.get(name, FieldType.TEXT)


def _to_descriptor(config: RawFieldConfig, position: int, purpose: FormPurpose) -> FieldDescriptor:
    field_type = resolve_field_type(config.type, config.is_external_lookup)
    is_external_lookup = field_type == FieldType.LOOKUP_EXTERNAL
    lookup_target = (config.lookup_target_type or "").strip() if is_external_lookup else ""
    return FieldDescriptor(
        field_name=config.field_name,
        label=(config.label or "").strip() or config.field_name,
        type=field_type,
        order=config.order if config.order is not None else position,
        required=config.required,
        sortable=config.sortable,
        is_link=config.is_link and purpose == FormPurpose.TABLE,
        is_external_lookup=is_external_lookup,
        lookup_target_type=lookup_target or None,
        picklist_options=tuple(config.options) if field_type == FieldType.PICKLIST else (),
    )


def resolve_fields(
    entries: Optional[Iterable[Mapping[str, Any]]],
    purpose: FormPurpose = FormPurpose.TABLE,
    object_type: str = "",
) -> List[FieldDescriptor]:
    """Resolve raw configuration entries into ordered field descriptors.

    Output is sorted by ``order`` then ``field_name``. Entries without a field
    name, entries that fail to parse, and repeated field names are dropped
    with a warning. An object type with no configured fields resolves to an
    empty list; callers decide whether that is an error.
    """
    descriptors: Dict[str, FieldDescriptor] = {}
    for position, entry in enumerate(entries or [], start=1):
        try:
            config = RawFieldConfig.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping unreadable {purpose.value} field config for {object_type}: {e}")
            continue
        if not config.field_name:
            logger.warning(f"Skipping {purpose.value} field config without a field name for {object_type}")
            continue
        descriptor = _to_descriptor(config, position, purpose)
        existing = descriptors.get(descriptor.field_name)
        if existing is not None:
            logger.warning(f"Duplicate {purpose.value} field {descriptor.field_name} for {object_type}")
            if (existing.order, existing.field_name) <= (descriptor.order, descriptor.field_name):
                continue
        descriptors[descriptor.field_name] = descriptor

    if not descriptors:
        logger.warning(f"No {purpose.value} fields configured for {object_type or 'object'}")

    return sorted(descriptors.values(), key=lambda d: (d.order, d.field_name))


def build_table_columns(descriptors: Iterable[FieldDescriptor]) -> List[TableColumn]:
    """Build the table column model: row number, configured columns, row actions."""
    columns = [
        TableColumn(
            label="#",
            field_name=ROW_NUMBER_FIELD,
            type="number",
            sortable=False,
            alignment="right",
            initial_width=60,
        )
    ]
    for descriptor in descriptors:
        if descriptor.is_link:
            columns.append(
                TableColumn(
                    label=descriptor.label,
                    field_name=descriptor.field_name,
                    type="button",
                    sortable=descriptor.sortable,
                    alignment="left",
                    action_name=VIEW_RECORD_ACTION,
                )
            )
            continue
        columns.append(
            TableColumn(
                label=descriptor.label,
                field_name=descriptor.field_name,
                type=descriptor.type.value,
                sortable=descriptor.sortable,
                options=list(descriptor.picklist_options),
            )
        )
    columns.append(TableColumn(label="", field_name="", type="action", row_actions=list(ROW_ACTIONS)))
    return columns
