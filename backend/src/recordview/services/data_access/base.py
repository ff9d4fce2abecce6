"""Abstract base class for data access services."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from recordview.models.field_descriptor import PicklistOption

LookupOption = PicklistOption


class ListRecordsResponse(BaseModel):
    """Records plus the table column configuration for an object type."""

    success: bool
    records: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[Dict[str, Any]] = Field(default_factory=list)
    error_message: Optional[str] = None


class RecordForEdit(BaseModel):
    """A single record with its edit field configuration."""

    record: Dict[str, Any] = Field(default_factory=dict)
    edit_fields: List[Dict[str, Any]] = Field(default_factory=list)
    lookup_labels: Dict[str, str] = Field(default_factory=dict)


class MutationResponse(BaseModel):
    """Result of a create, update or delete."""

    success: bool
    error_message: Optional[str] = None
    record_id: Optional[str] = None


class DataAccessService(ABC):
    """Abstract base class for the remote record store.

    All methods may raise; callers treat an exception the same as an
    unsuccessful response.
    """

    @abstractmethod
    async def list_records(
        self, object_type: str, search_term: Optional[str], limit: int
    ) -> ListRecordsResponse:
        """List records of an object type, optionally filtered upstream."""
        pass

    @abstractmethod
    async def get_record_for_edit(self, object_type: str, record_id: str) -> RecordForEdit:
        """Get a record together with its edit fields and lookup labels."""
        pass

    @abstractmethod
    async def get_create_fields(self, object_type: str) -> List[Dict[str, Any]]:
        """Get the create field configuration of an object type."""
        pass

    @abstractmethod
    async def search_lookup_candidates(
        self, target_type: str, search_term: str, max_results: int
    ) -> List[LookupOption]:
        """Search records of ``target_type`` by name."""
        pass

    @abstractmethod
    async def create_record(self, object_type: str, payload: Dict[str, Any]) -> MutationResponse:
        """Create a record."""
        pass

    @abstractmethod
    async def update_record(
        self, object_type: str, record_id: str, payload: Dict[str, Any]
    ) -> MutationResponse:
        """Update the given fields of a record."""
        pass

    @abstractmethod
    async def delete_record(self, object_type: str, record_id: str) -> MutationResponse:
        """Delete a record."""
        pass
