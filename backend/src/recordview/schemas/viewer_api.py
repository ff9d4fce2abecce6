"""Viewer schemas for API requests and responses."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from recordview.models.table_view import DisplayRow, SortDirection, TableColumn, TablePage
from recordview.services.form_view import FormField, build_form_fields, form_title, split_columns
from recordview.services.record_viewer import Notice, RecordViewer


class ViewerCreate(BaseModel):
    """Schema for opening a viewer on an object type."""

    object_type: str
    search_term: Optional[str] = None


class SearchRequest(BaseModel):
    search_term: Optional[str] = None


class SortRequest(BaseModel):
    field_name: str
    direction: SortDirection = SortDirection.ASC


class PageRequest(BaseModel):
    """Go to an explicit page or move relative to the current one."""

    page_index: Optional[int] = None
    move: Optional[str] = Field(default=None, pattern="^(first|prev|next|last)$")


class PageSizeRequest(BaseModel):
    page_size: Any


class FieldChangeRequest(BaseModel):
    field_name: str
    value: Any = None


class LookupInputRequest(BaseModel):
    text: Optional[str] = ""


class LookupSelectRequest(BaseModel):
    value: str
    label: Optional[str] = None


class TablePageResponse(BaseModel):
    """Table page plus the derived navigation flags."""

    rows: List[DisplayRow]
    page_index: int
    page_size: int
    total_pages: int
    total_records: int
    page_start: int
    page_end: int
    sort_field: Optional[str] = None
    sort_direction: SortDirection = SortDirection.ASC
    can_go_prev: bool
    can_go_next: bool
    page_info_text: str

    @classmethod
    def from_page(cls, page: TablePage) -> "TablePageResponse":
        return cls(
            **page.model_dump(),
            can_go_prev=page.can_go_prev,
            can_go_next=page.can_go_next,
            page_info_text=page.page_info_text,
        )


class SessionResponse(BaseModel):
    """Schema for the open edit session."""

    mode: str
    title: str
    record_id: Optional[str] = None
    fields_left: List[FormField]
    fields_right: List[FormField]
    error_message: str = ""


class ViewerStateResponse(BaseModel):
    """Schema for the complete viewer state."""

    id: str
    object_type: str
    state: str
    is_loading: bool
    has_data: bool
    has_searched: bool
    search_term: str
    error_message: str = ""
    error_type: Optional[str] = None
    columns: List[TableColumn]
    page: TablePageResponse
    page_size_options: List[int]
    pending_delete_id: Optional[str] = None
    session: Optional[SessionResponse] = None
    notices: List[Notice] = Field(default_factory=list)

    @classmethod
    def from_viewer(cls, viewer_id: str, viewer: RecordViewer) -> "ViewerStateResponse":
        session = None
        if viewer.session is not None:
            left, right = split_columns(build_form_fields(viewer.session))
            session = SessionResponse(
                mode=viewer.session.mode.value,
                title=form_title(viewer.session, viewer.settings.name_field),
                record_id=viewer.session.record_id,
                fields_left=left,
                fields_right=right,
                error_message=viewer.session.error_message,
            )
        return cls(
            id=viewer_id,
            object_type=viewer.object_type,
            state=viewer.state.value,
            is_loading=viewer.is_loading,
            has_data=viewer.has_data,
            has_searched=viewer.has_searched,
            search_term=viewer.search_term,
            error_message=viewer.error_message,
            error_type=type(viewer.last_error).__name__ if viewer.last_error else None,
            columns=viewer.table_columns,
            page=TablePageResponse.from_page(viewer.table_page),
            page_size_options=viewer.settings.page_size_options,
            pending_delete_id=viewer.pending_delete_id,
            session=session,
            notices=viewer.pop_notices(),
        )
