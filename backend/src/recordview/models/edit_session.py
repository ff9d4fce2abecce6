"""Edit session model: one record being created or edited."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from recordview.core.errors import SessionStateError
from recordview.core.timers import DebounceTimer
from recordview.models.field_descriptor import FieldDescriptor, PicklistOption


class SessionMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class LookupStatus(str, Enum):
    """Search state of one lookup field."""

    IDLE = "idle"
    TYPING = "typing"
    SEARCHING = "searching"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"
    FAILED = "failed"


class LookupFieldState(BaseModel):
    """Per-field search-as-you-type state."""

    search_term: str = ""
    options: List[PicklistOption] = Field(default_factory=list)
    selected_label: Optional[str] = None
    dropdown_open: bool = False
    status: LookupStatus = LookupStatus.IDLE
    pending_request_token: int = 0


class EditSession(BaseModel):
    """A record entering the form, with its snapshot and working copy.

    The snapshot is taken once when the session opens and never changes. The
    working copy is only written through the viewer's field handlers and
    lookup selection. Timers are owned by the session and torn down by
    :meth:`close`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    object_type: str
    mode: SessionMode
    descriptors: List[FieldDescriptor]
    original: Dict[str, Any] = Field(default_factory=dict)
    working: Dict[str, Any] = Field(default_factory=dict)
    lookup_state: Dict[str, LookupFieldState] = Field(default_factory=dict)
    record_id: Optional[str] = None
    error_message: str = ""
    field_errors: Dict[str, str] = Field(default_factory=dict)
    closed: bool = False

    _timers: Dict[str, DebounceTimer] = PrivateAttr(default_factory=dict)

    @classmethod
    def open_edit(
        cls,
        object_type: str,
        descriptors: List[FieldDescriptor],
        record: Dict[str, Any],
        identity_field: str,
        lookup_labels: Optional[Dict[str, str]] = None,
    ) -> "EditSession":
        """Open an edit session seeded with a snapshot of ``record``."""
        record_id = record.get(identity_field) if record else None
        if record_id is None or str(record_id).strip() == "":
            raise SessionStateError("Record Id is required to edit.")
        session = cls(
            object_type=object_type,
            mode=SessionMode.EDIT,
            descriptors=list(descriptors),
            original=dict(record),
            working=dict(record),
            record_id=str(record_id),
        )
        for field_name, label in (lookup_labels or {}).items():
            if label:
                session.lookup(field_name).selected_label = label
        return session

    @classmethod
    def open_create(cls, object_type: str, descriptors: List[FieldDescriptor]) -> "EditSession":
        """Open a create session with an empty snapshot."""
        return cls(object_type=object_type, mode=SessionMode.CREATE, descriptors=list(descriptors))

    @property
    def is_edit_mode(self) -> bool:
        return self.mode == SessionMode.EDIT

    def descriptor(self, field_name: str) -> Optional[FieldDescriptor]:
        for descriptor in self.descriptors:
            if descriptor.field_name == field_name:
                return descriptor
        return None

    def lookup(self, field_name: str) -> LookupFieldState:
        """Get the lookup state of a field, creating it on first use."""
        state = self.lookup_state.get(field_name)
        if state is None:
            state = LookupFieldState()
            self.lookup_state[field_name] = state
        return state

    def timer(self, key: str) -> Optional[DebounceTimer]:
        return self._timers.get(key)

    def set_timer(self, key: str, timer: DebounceTimer) -> None:
        self._timers[key] = timer

    def timers(self) -> List[DebounceTimer]:
        return list(self._timers.values())

    def close(self) -> None:
        """Cancel every pending timer and mark the session closed."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self.closed = True
