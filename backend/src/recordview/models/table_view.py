"""Table view models."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from recordview.models.field_descriptor import PicklistOption

ROW_NUMBER_FIELD = "__rowNum"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RowAction(BaseModel):
    label: str
    name: str


class TableColumn(BaseModel):
    """A rendered column of the records table."""

    label: str
    field_name: str
    type: str = "text"
    sortable: bool = False
    editable: bool = False
    alignment: Optional[str] = None
    initial_width: Optional[int] = None
    action_name: Optional[str] = None
    options: List[PicklistOption] = Field(default_factory=list)
    row_actions: List[RowAction] = Field(default_factory=list)


class TableViewState(BaseModel):
    """Inputs of the table projection. Never persisted."""

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    sort_field: Optional[str] = None
    sort_direction: SortDirection = SortDirection.ASC
    page_index: int = Field(default=1, ge=1)
    page_size: int = Field(default=25, gt=0)


class DisplayRow(BaseModel):
    row_number: int
    record: Dict[str, Any]


class TablePage(BaseModel):
    """The visible window of the table."""

    rows: List[DisplayRow]
    page_index: int
    page_size: int
    total_pages: int
    total_records: int
    page_start: int
    page_end: int
    sort_field: Optional[str] = None
    sort_direction: SortDirection = SortDirection.ASC

    @property
    def can_go_prev(self) -> bool:
        return self.page_index > 1

    @property
    def can_go_next(self) -> bool:
        return self.page_index < self.total_pages

    @property
    def page_info_text(self) -> str:
        if self.total_records == 0:
            return "No records"
        return (
            f"Page {self.page_index} of {self.total_pages} "
            f"({self.page_start}-{self.page_end} of {self.total_records})"
        )
