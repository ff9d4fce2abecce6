"""Field descriptor models shared by table columns and form fields."""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator


class FieldType(str, Enum):
    """Normalized field types."""

    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    PICKLIST = "picklist"
    LOOKUP_EXTERNAL = "lookup-external"
    NUMBER = "number"
    BOOLEAN = "boolean"


class FormPurpose(str, Enum):
    """What a descriptor set is built for."""

    TABLE = "table"
    EDIT = "edit"
    CREATE = "create"


class PicklistOption(BaseModel):
    """A single value/label pair, used for picklists and lookup results."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class FieldDescriptor(BaseModel):
    """Normalized, immutable description of one configured field."""

    model_config = ConfigDict(frozen=True)

    field_name: str
    label: str
    type: FieldType = FieldType.TEXT
    order: int = 0
    required: bool = False
    sortable: bool = False
    is_link: bool = False
    is_external_lookup: bool = False
    lookup_target_type: Optional[str] = None
    picklist_options: Tuple[PicklistOption, ...] = ()

    @model_validator(mode="after")
    def check_type_specific_attributes(self) -> "FieldDescriptor":
        if self.picklist_options and self.type != FieldType.PICKLIST:
            raise ValueError(f"Picklist options given for non-picklist field {self.field_name}")
        if self.lookup_target_type is not None and not self.is_external_lookup:
            raise ValueError(f"Lookup target given for non-lookup field {self.field_name}")
        return self

    @property
    def is_picklist(self) -> bool:
        return self.type == FieldType.PICKLIST and len(self.picklist_options) > 0

    @property
    def input_type(self) -> str:
        """Input widget type used by form renderers."""
        if self.type == FieldType.PHONE:
            return "tel"
        return self.type.value
