"""Record viewer: the state machine behind the records table and its form.

A viewer loads records of one object type, projects them into a sorted,
paged table, and runs at most one edit session at a time. Every intent
handler turns failures into a state transition plus a user-visible message;
nothing raises out of an intent.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from recordview.core.config import Settings
from recordview.core.errors import (
    ConfigurationError,
    FieldValidationError,
    NoChangesError,
    RecordViewError,
    SessionStateError,
    TransportError,
)
from recordview.models.edit_session import EditSession
from recordview.models.field_descriptor import FieldDescriptor, FormPurpose
from recordview.models.table_view import SortDirection, TableColumn, TablePage, TableViewState
from recordview.services import table_view
from recordview.services.change_set import build_submit_payload
from recordview.services.data_access.base import DataAccessService, MutationResponse
from recordview.services.schema_resolver import VIEW_RECORD_ACTION, build_table_columns, resolve_fields
from recordview.services.search_controller import LookupSearchController
from recordview.core.timers import DebounceTimer
from recordview.services.validation import validate_fields

logger = logging.getLogger(__name__)


class ViewerState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    LOAD_ERROR = "load_error"
    EDITING = "editing"
    SUBMITTING = "submitting"
    DELETING = "deleting"
    DELETE_ERROR = "delete_error"


# States in which the table can be (re)loaded or a row action started.
TABLE_STATES = {
    ViewerState.IDLE,
    ViewerState.LOADING,
    ViewerState.LOADED,
    ViewerState.LOAD_ERROR,
    ViewerState.DELETE_ERROR,
}
ROW_ACTION_STATES = {ViewerState.LOADED, ViewerState.DELETE_ERROR}


class Notice(BaseModel):
    """A transient success message for the UI layer."""

    title: str
    message: str
    variant: str = "success"


class RecordViewer:
    """Load, browse, edit, create and delete records of one object type."""

    def __init__(self, object_type: str, data_access: DataAccessService, settings: Settings):
        self.object_type = (object_type or "").strip()
        self.data_access = data_access
        self.settings = settings

        self.state = ViewerState.IDLE
        self.rows: List[Dict[str, Any]] = []
        self.columns: List[FieldDescriptor] = []
        self.table_columns: List[TableColumn] = []
        self.sort_field: Optional[str] = None
        self.sort_direction = SortDirection.ASC
        self.page_index = 1
        self.page_size = settings.default_page_size
        self.search_term = ""
        self.has_searched = False

        self.error_message = ""
        self.last_error: Optional[RecordViewError] = None
        self.notices: List[Notice] = []

        self.session: Optional[EditSession] = None
        self.lookups: Optional[LookupSearchController] = None
        self.pending_delete_id: Optional[str] = None

        self._load_token = 0
        self._resume_state = ViewerState.LOADED
        self._search_timer = DebounceTimer(
            settings.search_debounce_seconds, self.load, name=f"search:{self.object_type}"
        )

    # -- state helpers -------------------------------------------------

    def _transition(self, state: ViewerState) -> None:
        if state != self.state:
            logger.info(f"Viewer {self.object_type}: {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, error: RecordViewError) -> bool:
        self.last_error = error
        self.error_message = error.message
        return False

    def _clear_error(self) -> None:
        self.last_error = None
        self.error_message = ""

    def _require(self, allowed: set, action: str) -> None:
        if self.state not in allowed:
            raise SessionStateError(f"Cannot {action} while {self.state.value.replace('_', ' ')}.")

    @property
    def is_loading(self) -> bool:
        return self.state in (ViewerState.LOADING, ViewerState.SUBMITTING, ViewerState.DELETING)

    @property
    def has_data(self) -> bool:
        return bool(self.rows)

    # -- loading -------------------------------------------------------

    async def load(self) -> bool:
        """Load records for the current search term (user-triggered)."""
        try:
            self._require(TABLE_STATES, "reload records")
        except SessionStateError as e:
            return self._fail(e)
        return await self._load()

    async def _load(self) -> bool:
        if not self.object_type:
            self._transition(ViewerState.LOAD_ERROR)
            return self._fail(SessionStateError("Object type is required."))

        self._load_token += 1
        token = self._load_token
        self._transition(ViewerState.LOADING)
        self._clear_error()
        self.has_searched = True

        try:
            response = await self.data_access.list_records(
                self.object_type, self.search_term or None, self.settings.fetch_limit
            )
        except Exception as e:
            if token != self._load_token:
                return False
            logger.error(f"Error loading {self.object_type} records: {e}")
            return self._load_failed(TransportError.from_exception(e, "Failed to load records."))

        if token != self._load_token:
            logger.warning(f"Discarding superseded {self.object_type} load result")
            return False
        if not response.success:
            logger.error(f"Loading {self.object_type} records failed: {response.error_message}")
            return self._load_failed(TransportError(response.error_message or "An error occurred."))

        self.rows = list(response.records or [])
        self.columns = resolve_fields(response.columns, FormPurpose.TABLE, self.object_type)
        self.table_columns = build_table_columns(self.columns)
        self._reset_view()
        self._transition(ViewerState.LOADED)
        if not self.columns:
            self._fail(ConfigurationError(self.object_type, FormPurpose.TABLE.value))
        logger.info(f"Loaded {len(self.rows)} {self.object_type} records")
        return True

    def _load_failed(self, error: TransportError) -> bool:
        self.rows = []
        self.columns = []
        self.table_columns = []
        self._reset_view()
        self._transition(ViewerState.LOAD_ERROR)
        return self._fail(error)

    def _reset_view(self) -> None:
        self.sort_field = None
        self.sort_direction = SortDirection.ASC
        self.page_index = 1

    def search(self, term: Optional[str]) -> None:
        """Debounce a search-box change, then reload with the new term."""
        self.search_term = (term or "").strip()
        self._search_timer.start()

    async def wait(self) -> None:
        """Wait for pending debounce timers and in-flight lookup searches."""
        await self._search_timer.wait()
        if self.lookups is not None:
            await self.lookups.wait()

    # -- table projection ----------------------------------------------

    @property
    def view_state(self) -> TableViewState:
        return TableViewState(
            rows=self.rows,
            sort_field=self.sort_field,
            sort_direction=self.sort_direction,
            page_index=self.page_index,
            page_size=self.page_size,
        )

    @property
    def table_page(self) -> TablePage:
        return table_view.project(self.view_state)

    @property
    def total_pages(self) -> int:
        return table_view.total_pages(len(self.rows), self.page_size)

    def sort(self, field_name: Optional[str], direction: Any = SortDirection.ASC) -> bool:
        """Sort the table on a sortable column."""
        if not field_name or not self.rows:
            return False
        column = next((c for c in self.columns if c.field_name == field_name), None)
        if column is None or not column.sortable:
            logger.warning(f"Ignoring sort on non-sortable field {field_name}")
            return False
        try:
            self.sort_direction = SortDirection(direction)
        except ValueError:
            self.sort_direction = SortDirection.ASC
        self.sort_field = field_name
        return True

    def set_page_size(self, page_size: Any) -> None:
        """Change the page size, keeping the current page in range."""
        try:
            size = int(page_size)
        except (TypeError, ValueError):
            size = self.settings.default_page_size
        if size not in self.settings.page_size_options:
            size = self.settings.default_page_size
        if size == self.page_size:
            return
        self.page_size = size
        self.page_index = table_view.clamp_page(self.page_index, len(self.rows), self.page_size)

    def go_to_page(self, page_index: int) -> None:
        self.page_index = table_view.clamp_page(int(page_index), len(self.rows), self.page_size)

    def first_page(self) -> None:
        self.page_index = 1

    def prev_page(self) -> None:
        if self.page_index > 1:
            self.page_index -= 1

    def next_page(self) -> None:
        if self.page_index < self.total_pages:
            self.page_index += 1

    def last_page(self) -> None:
        self.page_index = self.total_pages

    async def handle_row_action(self, action_name: str, row: Dict[str, Any]) -> bool:
        """Dispatch a row action from the table (view, edit or delete)."""
        record_id = (row or {}).get(self.settings.identity_field)
        if action_name in (VIEW_RECORD_ACTION, "edit"):
            return await self.start_edit(record_id)
        if action_name == "delete":
            return self.request_delete(record_id)
        logger.warning(f"Unknown row action: {action_name}")
        return False

    # -- edit sessions -------------------------------------------------

    async def start_edit(self, record_id: Optional[str]) -> bool:
        """Open an edit session for a record."""
        if not self.object_type:
            return self._fail(SessionStateError("Object type is required."))
        if record_id is None or str(record_id).strip() == "":
            return self._fail(SessionStateError("Record Id is required to edit."))
        try:
            self._require(ROW_ACTION_STATES, "edit a record")
        except SessionStateError as e:
            return self._fail(e)

        self._clear_error()
        try:
            response = await self.data_access.get_record_for_edit(self.object_type, str(record_id))
            descriptors = resolve_fields(response.edit_fields, FormPurpose.EDIT, self.object_type)
            session = EditSession.open_edit(
                self.object_type,
                descriptors,
                response.record,
                self.settings.identity_field,
                response.lookup_labels,
            )
        except SessionStateError as e:
            logger.warning(f"Cannot edit {self.object_type} {record_id}: {e.message}")
            return self._fail(e)
        except Exception as e:
            logger.error(f"Error opening {self.object_type} {record_id} for edit: {e}")
            return self._fail(TransportError.from_exception(e, "Failed to load record."))

        self._open_session(session)
        return True

    async def start_create(self) -> bool:
        """Open a create session."""
        if not self.object_type:
            return self._fail(SessionStateError("Object type is required."))
        try:
            self._require(ROW_ACTION_STATES | {ViewerState.LOAD_ERROR}, "create a record")
        except SessionStateError as e:
            return self._fail(e)

        self._clear_error()
        try:
            fields = await self.data_access.get_create_fields(self.object_type)
        except Exception as e:
            logger.error(f"Error loading {self.object_type} create fields: {e}")
            return self._fail(TransportError.from_exception(e, "Failed to load fields."))

        descriptors = resolve_fields(fields, FormPurpose.CREATE, self.object_type)
        self._open_session(EditSession.open_create(self.object_type, descriptors))
        return True

    def _open_session(self, session: EditSession) -> None:
        if self.state == ViewerState.LOAD_ERROR:
            self._resume_state = ViewerState.LOAD_ERROR
        else:
            self._resume_state = ViewerState.LOADED
        self.session = session
        self.lookups = LookupSearchController(session, self.data_access, self.settings)
        self._transition(ViewerState.EDITING)
        if not session.descriptors:
            purpose = FormPurpose.EDIT if session.is_edit_mode else FormPurpose.CREATE
            self._fail(ConfigurationError(self.object_type, purpose.value))

    def _close_session(self) -> None:
        if self.session is not None:
            self.session.close()
        self.session = None
        self.lookups = None

    def _editing_session(self) -> EditSession:
        if self.state != ViewerState.EDITING or self.session is None:
            raise SessionStateError("No record is being edited.")
        return self.session

    def _lookup_session(self, field_name: str) -> EditSession:
        session = self._editing_session()
        descriptor = session.descriptor(field_name)
        if descriptor is None or not descriptor.is_external_lookup:
            raise SessionStateError(f"{field_name} is not a lookup field.")
        return session

    def change_field(self, field_name: str, value: Any) -> bool:
        """Write a user-entered value into the working copy."""
        try:
            session = self._editing_session()
        except SessionStateError as e:
            return self._fail(e)
        session.working[field_name] = value
        session.field_errors.pop(field_name, None)
        return True

    def lookup_input(self, field_name: str, text: Optional[str]) -> bool:
        try:
            self._lookup_session(field_name)
        except SessionStateError as e:
            return self._fail(e)
        self.lookups.on_input(field_name, text)
        return True

    def select_lookup_option(self, field_name: str, value: str, label: Optional[str] = None) -> bool:
        try:
            self._lookup_session(field_name)
        except SessionStateError as e:
            return self._fail(e)
        self.lookups.select(field_name, value, label)
        return True

    def clear_lookup(self, field_name: str) -> bool:
        try:
            self._lookup_session(field_name)
        except SessionStateError as e:
            return self._fail(e)
        self.lookups.clear(field_name)
        return True

    def lookup_blur(self, field_name: str) -> bool:
        try:
            self._lookup_session(field_name)
        except SessionStateError as e:
            return self._fail(e)
        self.lookups.blur(field_name)
        return True

    def cancel_edit(self) -> bool:
        """Discard the edit session without saving."""
        if self.state != ViewerState.EDITING:
            return self._fail(SessionStateError("No record is being edited."))
        self._close_session()
        self._clear_error()
        self._transition(self._resume_state)
        return True

    async def submit(self) -> bool:
        """Validate, diff and persist the edit session, then reload."""
        if self.state == ViewerState.SUBMITTING:
            return self._fail(SessionStateError("A save is already in progress."))
        try:
            session = self._editing_session()
        except SessionStateError as e:
            return self._fail(e)

        session.error_message = ""
        self._clear_error()
        try:
            if session.is_edit_mode and not session.record_id:
                raise SessionStateError("Record Id is required to update.")
            validate_fields(session.descriptors, session.working).raise_for_errors(session.descriptors)
            payload = build_submit_payload(session)
        except FieldValidationError as e:
            session.field_errors = dict(e.field_errors)
            return self._session_failed(session, e)
        except (NoChangesError, SessionStateError) as e:
            return self._session_failed(session, e)

        self._transition(ViewerState.SUBMITTING)
        if session.is_edit_mode:
            title, success_message, fallback = "Saved", "Record updated in external org.", "Failed to save."
        else:
            title, success_message, fallback = "Created", "Record created in external org.", "Failed to create."

        try:
            if session.is_edit_mode:
                response = await self.data_access.update_record(self.object_type, session.record_id, payload)
            else:
                response = await self.data_access.create_record(self.object_type, payload)
        except Exception as e:
            logger.error(f"Error saving {self.object_type} record: {e}")
            response = MutationResponse(success=False, error_message=TransportError.from_exception(e, fallback).message)

        if not response.success:
            self._transition(ViewerState.EDITING)
            return self._session_failed(session, TransportError(response.error_message or fallback))

        self.notices.append(Notice(title=title, message=success_message))
        self._close_session()
        await self._load()
        return True

    def _session_failed(self, session: EditSession, error: RecordViewError) -> bool:
        session.error_message = error.message
        return self._fail(error)

    # -- deletion ------------------------------------------------------

    def request_delete(self, record_id: Optional[str]) -> bool:
        """Ask for confirmation before deleting a record."""
        if not self.object_type or record_id is None or str(record_id).strip() == "":
            return self._fail(SessionStateError("Record Id is required to delete."))
        try:
            self._require(ROW_ACTION_STATES, "delete a record")
        except SessionStateError as e:
            return self._fail(e)
        self.pending_delete_id = str(record_id)
        return True

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    async def confirm_delete(self) -> bool:
        """Delete the record awaiting confirmation, then reload."""
        if self.state == ViewerState.DELETING:
            return self._fail(SessionStateError("A delete is already in progress."))
        if self.pending_delete_id is None:
            return self._fail(SessionStateError("No record is awaiting deletion."))
        try:
            self._require(ROW_ACTION_STATES, "delete a record")
        except SessionStateError as e:
            return self._fail(e)

        record_id, self.pending_delete_id = self.pending_delete_id, None
        self._clear_error()
        self._transition(ViewerState.DELETING)
        try:
            response = await self.data_access.delete_record(self.object_type, record_id)
        except Exception as e:
            logger.error(f"Error deleting {self.object_type} {record_id}: {e}")
            response = MutationResponse(
                success=False, error_message=TransportError.from_exception(e, "Failed to delete.").message
            )

        if not response.success:
            self._transition(ViewerState.DELETE_ERROR)
            return self._fail(TransportError(response.error_message or "Failed to delete."))

        self.notices.append(Notice(title="Deleted", message="Record deleted in external org."))
        await self._load()
        return True

    def pop_notices(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices

    def close(self) -> None:
        """Tear down timers and any open session."""
        self._search_timer.cancel()
        self._close_session()
