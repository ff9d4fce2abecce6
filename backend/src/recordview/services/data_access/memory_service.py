"""In-memory data access implementation."""

import asyncio
import copy
import logging
import uuid
from typing import Any, Dict, List, Optional

from recordview.core.config import Settings
from recordview.services.data_access.base import (
    DataAccessService,
    ListRecordsResponse,
    LookupOption,
    MutationResponse,
    RecordForEdit,
)
from recordview.services.lookup_resolver import resolve_lookup_target

logger = logging.getLogger(__name__)

SAMPLE_FIELD_CONFIG: Dict[str, Dict[str, List[Dict[str, Any]]]] = {
    "Account": {
        "columns": [
            {"fieldName": "Name", "label": "Account Name", "type": "text", "order": 1, "sortable": True, "isLink": True},
            {"fieldName": "Phone", "label": "Phone", "type": "phone", "order": 2, "sortable": True},
            {"fieldName": "Industry", "label": "Industry", "type": "picklist", "order": 3, "sortable": True,
             "options": [{"value": "Energy", "label": "Energy"}, {"value": "Retail", "label": "Retail"}]},
        ],
        "edit_fields": [
            {"fieldName": "Name", "label": "Account Name", "type": "text", "order": 1, "required": True},
            {"fieldName": "Phone", "label": "Phone", "type": "phone", "order": 2},
            {"fieldName": "Industry", "label": "Industry", "type": "picklist", "order": 3,
             "options": [{"value": "Energy", "label": "Energy"}, {"value": "Retail", "label": "Retail"}]},
            {"fieldName": "OwnerId", "label": "Owner", "order": 4, "isExternalLookup": True},
        ],
    },
    "User": {
        "columns": [
            {"fieldName": "Name", "label": "Name", "type": "text", "order": 1, "sortable": True},
            {"fieldName": "Email", "label": "Email", "type": "email", "order": 2, "sortable": True},
        ],
        "edit_fields": [
            {"fieldName": "Name", "label": "Name", "type": "text", "order": 1, "required": True},
            {"fieldName": "Email", "label": "Email", "type": "email", "order": 2, "required": True},
        ],
    },
}

SAMPLE_RECORDS: Dict[str, List[Dict[str, Any]]] = {
    "User": [
        {"Id": "005A", "Name": "Ada Lovelace", "Email": "ada@example.com"},
        {"Id": "005B", "Name": "Grace Hopper", "Email": "grace@example.com"},
    ],
    "Account": [
        {"Id": "001A", "Name": "Acme", "Phone": "415-555-0100", "Industry": "Energy", "OwnerId": "005A"},
        {"Id": "001B", "Name": "Globex", "Phone": "", "Industry": "Retail", "OwnerId": "005B"},
        {"Id": "001C", "Name": "Initech", "Phone": "212-555-0199", "Industry": None, "OwnerId": None},
    ],
}


class InMemoryDataAccessService(DataAccessService):
    """Data access over records and field configuration held in memory."""

    def __init__(
        self,
        settings: Settings,
        field_config: Optional[Dict[str, Dict[str, List[Dict[str, Any]]]]] = None,
        records: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> None:
        self.settings = settings
        self.identity_field = settings.identity_field
        self.name_field = settings.name_field
        self.field_config = copy.deepcopy(field_config or {})
        self._records: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for object_type, rows in (records or {}).items():
            for row in rows:
                self._store(object_type, row)

    @classmethod
    def with_sample_data(cls, settings: Settings) -> "InMemoryDataAccessService":
        return cls(settings, field_config=SAMPLE_FIELD_CONFIG, records=SAMPLE_RECORDS)

    def _store(self, object_type: str, row: Dict[str, Any]) -> str:
        record = dict(row)
        record_id = record.get(self.identity_field)
        if not record_id:
            record_id = uuid.uuid4().hex[:18]
            record[self.identity_field] = record_id
        self._records.setdefault(object_type, {})[str(record_id)] = record
        return str(record_id)

    def _config(self, object_type: str, purpose: str) -> List[Dict[str, Any]]:
        config = self.field_config.get(object_type, {})
        entries = config.get(purpose)
        if entries is None and purpose == "create_fields":
            entries = config.get("edit_fields")
        return copy.deepcopy(entries or [])

    def records(self, object_type: str) -> List[Dict[str, Any]]:
        """Snapshot of the stored records of an object type."""
        return [dict(row) for row in self._records.get(object_type, {}).values()]

    async def list_records(
        self, object_type: str, search_term: Optional[str], limit: int
    ) -> ListRecordsResponse:
        await asyncio.sleep(0)
        if object_type not in self._records and object_type not in self.field_config:
            return ListRecordsResponse(success=False, error_message=f"Unknown object type: {object_type}")

        needle = (search_term or "").strip().lower()
        rows = []
        for row in self._records.get(object_type, {}).values():
            if needle and not any(
                needle in str(value).lower() for value in row.values() if value is not None
            ):
                continue
            rows.append(dict(row))
            if len(rows) >= limit:
                break

        logger.info(f"Listed {len(rows)} {object_type} records (search={search_term!r})")
        return ListRecordsResponse(success=True, records=rows, columns=self._config(object_type, "columns"))

    async def get_record_for_edit(self, object_type: str, record_id: str) -> RecordForEdit:
        await asyncio.sleep(0)
        record = self._records.get(object_type, {}).get(record_id)
        if record is None:
            raise LookupError(f"{object_type} record {record_id} not found")

        edit_fields = self._config(object_type, "edit_fields")
        lookup_labels = {}
        for field in edit_fields:
            if not (field.get("isExternalLookup") or field.get("IsExternalLookup")):
                continue
            field_name = field.get("fieldName") or field.get("FieldName")
            value = record.get(field_name)
            target = resolve_lookup_target(field)
            referenced = self._records.get(target, {}).get(str(value)) if value else None
            if referenced is not None:
                lookup_labels[field_name] = str(referenced.get(self.name_field) or value)

        return RecordForEdit(record=dict(record), edit_fields=edit_fields, lookup_labels=lookup_labels)

    async def get_create_fields(self, object_type: str) -> List[Dict[str, Any]]:
        await asyncio.sleep(0)
        return self._config(object_type, "create_fields")

    async def search_lookup_candidates(
        self, target_type: str, search_term: str, max_results: int
    ) -> List[LookupOption]:
        await asyncio.sleep(0)
        needle = (search_term or "").strip().lower()
        options = []
        for record_id, row in self._records.get(target_type, {}).items():
            name = str(row.get(self.name_field) or "")
            if needle and needle not in name.lower():
                continue
            options.append(LookupOption(value=record_id, label=name or record_id))
            if len(options) >= max_results:
                break
        return options

    async def create_record(self, object_type: str, payload: Dict[str, Any]) -> MutationResponse:
        await asyncio.sleep(0)
        if not payload:
            return MutationResponse(success=False, error_message="No field values were provided.")
        record = {key: value for key, value in payload.items() if key != self.identity_field}
        record_id = self._store(object_type, record)
        logger.info(f"Created {object_type} record {record_id}")
        return MutationResponse(success=True, record_id=record_id)

    async def update_record(
        self, object_type: str, record_id: str, payload: Dict[str, Any]
    ) -> MutationResponse:
        await asyncio.sleep(0)
        record = self._records.get(object_type, {}).get(record_id)
        if record is None:
            return MutationResponse(success=False, error_message=f"{object_type} record {record_id} not found")
        record.update({key: value for key, value in payload.items() if key != self.identity_field})
        logger.info(f"Updated {object_type} record {record_id}: {sorted(payload)}")
        return MutationResponse(success=True, record_id=record_id)

    async def delete_record(self, object_type: str, record_id: str) -> MutationResponse:
        await asyncio.sleep(0)
        if self._records.get(object_type, {}).pop(record_id, None) is None:
            return MutationResponse(success=False, error_message=f"{object_type} record {record_id} not found")
        logger.info(f"Deleted {object_type} record {record_id}")
        return MutationResponse(success=True, record_id=record_id)
