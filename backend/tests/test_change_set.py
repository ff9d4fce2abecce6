"""Tests for change-set computation."""

from datetime import date, datetime, timezone

import pytest

from recordview.core.errors import NoChangesError, SessionStateError
from recordview.models.edit_session import EditSession
from recordview.models.field_descriptor import FieldDescriptor, FieldType
from recordview.services.change_set import (
    build_submit_payload,
    compute_change_set,
    normalized_value,
)


@pytest.fixture
def descriptors():
    """Edit fields of an account."""
    return [
        FieldDescriptor(field_name="Name", label="Name", required=True),
        FieldDescriptor(field_name="Phone", label="Phone", type=FieldType.PHONE),
        FieldDescriptor(field_name="CloseDate", label="Close Date", type=FieldType.DATE),
        FieldDescriptor(field_name="Active", label="Active", type=FieldType.BOOLEAN),
        FieldDescriptor(field_name="OwnerId", label="Owner", type=FieldType.LOOKUP_EXTERNAL,
                        is_external_lookup=True),
    ]


@pytest.fixture
def record():
    """A record as loaded from the remote store."""
    return {
        "Id": "001A",
        "Name": "Acme",
        "Phone": None,
        "CloseDate": "2024-01-05T00:00:00.000+0000",
        "Active": True,
        "OwnerId": {"value": "005A"},
        "Website": "acme.example",
    }


@pytest.fixture
def edit_session(descriptors, record):
    """An edit session seeded with the record."""
    return EditSession.open_edit("Account", descriptors, record, "Id")


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        ("", ""),
        ("   ", ""),
        ("  Acme  ", "Acme"),
        ({"value": " x "}, "x"),
        ({"value": None}, ""),
        ("2024-01-05", "2024-01-05"),
        ("2024-01-05T00:00:00Z", "2024-01-05"),
        ("2024-01-05T00:00:00.000+0000", "2024-01-05"),
        ("2024-01-05T23:30:00-05:00", "2024-01-06"),
        (date(2024, 1, 5), "2024-01-05"),
        (datetime(2024, 1, 5, tzinfo=timezone.utc), "2024-01-05"),
        ("2024-13-45", "2024-13-45"),
        ("4155550100", "4155550100"),
        (True, "true"),
        (42, "42"),
    ],
)
def test_normalized_value(value, expected):
    """Test the normalization applied before comparison."""
    assert normalized_value(value) == expected


def test_unmodified_session_has_empty_change_set(edit_session):
    """Test that an untouched edit session produces no payload."""
    assert compute_change_set(edit_session) == {}


def test_equivalent_formatting_is_not_a_change(edit_session):
    """Test that formatting-only differences are excluded."""
    edit_session.working["CloseDate"] = "2024-01-05"
    edit_session.working["Phone"] = ""
    edit_session.working["Name"] = "  Acme "
    edit_session.working["OwnerId"] = "005A"

    assert compute_change_set(edit_session) == {}


def test_changed_fields_carry_raw_working_value(edit_session):
    """Test that only changed fields are included, with raw values."""
    edit_session.working["Name"] = "Acme Corp "
    edit_session.working["CloseDate"] = "2024-02-01"
    edit_session.working["Website"] = "changed.example"

    payload = compute_change_set(edit_session)

    # Website is not a configured edit field
    assert payload == {"Name": "Acme Corp ", "CloseDate": "2024-02-01"}


def test_cleared_field_is_sent_as_empty_string(edit_session):
    """Test that clearing a value sends an empty string."""
    edit_session.working["Name"] = None

    assert compute_change_set(edit_session) == {"Name": ""}


def test_create_mode_sends_all_non_empty_values(descriptors):
    """Test that create mode does not diff and skips empty values."""
    session = EditSession.open_create("Account", descriptors)
    session.working.update({"Name": "Initech", "Phone": "", "Active": False, "OwnerId": None})

    assert compute_change_set(session) == {"Name": "Initech", "Active": False}


def test_empty_edit_is_rejected(edit_session):
    """Test that submitting an unchanged edit raises a no-changes error."""
    with pytest.raises(NoChangesError) as exc_info:
        build_submit_payload(edit_session)

    assert exc_info.value.message == "No fields were changed."


def test_empty_create_payload_is_allowed(descriptors):
    """Test that create mode never raises for an empty payload."""
    session = EditSession.open_create("Account", descriptors)

    assert build_submit_payload(session) == {}


def test_snapshot_is_independent_of_working_copy(edit_session, record):
    """Test that edits never leak into the snapshot."""
    edit_session.working["Name"] = "Changed"

    assert edit_session.original["Name"] == "Acme"
    assert record["Name"] == "Acme"


def test_edit_session_requires_identity(descriptors):
    """Test that a record without an identity cannot be edited."""
    with pytest.raises(SessionStateError) as exc_info:
        EditSession.open_edit("Account", descriptors, {"Name": "No Id"}, "Id")

    assert exc_info.value.message == "Record Id is required to edit."
