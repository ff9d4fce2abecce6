"""Tests for the lookup search-as-you-type controller."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from recordview.core.config import Settings
from recordview.models.edit_session import EditSession, LookupStatus
from recordview.models.field_descriptor import FieldDescriptor, FieldType
from recordview.services.data_access.base import DataAccessService, LookupOption
from recordview.services.search_controller import LookupSearchController


async def wait_until(condition, timeout=2.0):
    """Poll the event loop until ``condition()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def settings():
    """Settings with short delays."""
    return Settings(lookup_debounce_ms=20, lookup_blur_grace_ms=20, search_debounce_ms=20)


@pytest.fixture
def session():
    """A create session with two independent lookup fields."""
    descriptors = [
        FieldDescriptor(field_name="Name", label="Name"),
        FieldDescriptor(field_name="OwnerId", label="Owner", type=FieldType.LOOKUP_EXTERNAL,
                        is_external_lookup=True),
        FieldDescriptor(field_name="ParentId", label="Parent", type=FieldType.LOOKUP_EXTERNAL,
                        is_external_lookup=True, lookup_target_type="Account"),
        FieldDescriptor(field_name="Notes", label="Notes", type=FieldType.LOOKUP_EXTERNAL,
                        is_external_lookup=True),
    ]
    return EditSession.open_create("Account", descriptors)


@pytest.fixture
def data_access():
    """Data access mock answering lookups by echoing the search term."""
    mock = MagicMock(spec=DataAccessService)

    async def search(target_type, search_term, max_results):
        return [LookupOption(value=f"{target_type}:{search_term}", label=search_term.upper())]

    mock.search_lookup_candidates = AsyncMock(side_effect=search)
    return mock


@pytest.fixture
def gated_data_access():
    """Data access mock whose lookups block until their gate is released."""
    mock = MagicMock(spec=DataAccessService)
    mock.gates = {}

    async def search(target_type, search_term, max_results):
        gate = asyncio.Event()
        mock.gates[search_term] = gate
        await gate.wait()
        return [LookupOption(value=search_term, label=search_term.upper())]

    mock.search_lookup_candidates = AsyncMock(side_effect=search)
    return mock


@pytest.mark.asyncio
async def test_rapid_keystrokes_issue_one_query(session, data_access, settings):
    """Test that keystrokes inside the debounce window collapse into one query."""
    controller = LookupSearchController(session, data_access, settings)

    controller.on_input("OwnerId", "a")
    controller.on_input("OwnerId", "ab")
    controller.on_input("OwnerId", "abc")
    await controller.wait("OwnerId")

    data_access.search_lookup_candidates.assert_awaited_once_with("User", "abc", 50)
    state = session.lookup("OwnerId")
    assert state.status == LookupStatus.RESOLVED
    assert [o.value for o in state.options] == ["User:abc"]
    assert state.dropdown_open is True


@pytest.mark.asyncio
async def test_stale_response_is_discarded(session, gated_data_access, settings):
    """Test that a response for an older search term never overwrites newer results."""
    controller = LookupSearchController(session, gated_data_access, settings)
    gates = gated_data_access.gates

    controller.on_input("OwnerId", "a")
    await wait_until(lambda: "a" in gates)
    controller.on_input("OwnerId", "abc")
    await wait_until(lambda: "abc" in gates)

    # The stale response arrives after the newer query started
    gates["a"].set()
    await asyncio.sleep(0.02)
    state = session.lookup("OwnerId")
    assert state.options == []
    assert state.status == LookupStatus.SEARCHING

    gates["abc"].set()
    await controller.wait("OwnerId")

    assert [o.value for o in state.options] == ["abc"]
    assert state.status == LookupStatus.RESOLVED
    assert gated_data_access.search_lookup_candidates.await_count == 2


@pytest.mark.asyncio
async def test_superseded_search_reports_cancelled(session, gated_data_access, settings):
    """Test that selecting an option while a search is in flight wins."""
    controller = LookupSearchController(session, gated_data_access, settings)
    session.lookup("OwnerId").search_term = "ada"

    task = asyncio.ensure_future(controller.search("OwnerId"))
    await wait_until(lambda: "ada" in gated_data_access.gates)
    controller.select("OwnerId", "005A", "Ada Lovelace")
    gated_data_access.gates["ada"].set()

    assert await task == LookupStatus.CANCELLED
    state = session.lookup("OwnerId")
    assert state.options == []
    assert state.selected_label == "Ada Lovelace"
    assert session.working["OwnerId"] == "005A"


@pytest.mark.asyncio
async def test_search_failure_resolves_to_empty(session, data_access, settings):
    """Test that a failed search yields an empty option list and a failed status."""
    data_access.search_lookup_candidates = AsyncMock(side_effect=RuntimeError("Remote unavailable"))
    controller = LookupSearchController(session, data_access, settings)
    session.lookup("OwnerId").options = [LookupOption(value="old", label="Old")]

    status = await controller.search("OwnerId")

    assert status == LookupStatus.FAILED
    assert session.lookup("OwnerId").options == []


@pytest.mark.asyncio
async def test_unresolvable_target_skips_query(session, data_access, settings):
    """Test that a field without a lookup target resolves empty without a query."""
    controller = LookupSearchController(session, data_access, settings)
    session.lookup("Notes").search_term = "anything"

    status = await controller.search("Notes")

    assert status == LookupStatus.RESOLVED
    assert session.lookup("Notes").options == []
    data_access.search_lookup_candidates.assert_not_called()


@pytest.mark.asyncio
async def test_input_clears_previous_selection(session, data_access, settings):
    """Test that typing discards the selected value until a new option is chosen."""
    controller = LookupSearchController(session, data_access, settings)
    controller.select("OwnerId", "005A", "Ada Lovelace")

    controller.on_input("OwnerId", "gr")

    state = session.lookup("OwnerId")
    assert session.working["OwnerId"] == ""
    assert state.selected_label is None
    assert state.status == LookupStatus.TYPING
    assert state.search_term == "gr"
    await controller.wait()


@pytest.mark.asyncio
async def test_select_writes_working_copy(session, data_access, settings):
    """Test selection of a lookup option."""
    controller = LookupSearchController(session, data_access, settings)
    session.field_errors["OwnerId"] = "This field is required."
    controller.on_input("OwnerId", "ad")
    await controller.wait("OwnerId")

    controller.select("OwnerId", "005A", "Ada Lovelace")

    state = session.lookup("OwnerId")
    assert session.working["OwnerId"] == "005A"
    assert state.selected_label == "Ada Lovelace"
    assert state.search_term == ""
    assert state.options == []
    assert state.dropdown_open is False
    assert state.status == LookupStatus.IDLE
    assert "OwnerId" not in session.field_errors


@pytest.mark.asyncio
async def test_select_cancels_pending_search(session, data_access, settings):
    """Test that a selection made during the debounce window stops the query."""
    controller = LookupSearchController(session, data_access, settings)

    controller.on_input("OwnerId", "ad")
    controller.select("OwnerId", "005A", "Ada Lovelace")
    await controller.wait("OwnerId")

    data_access.search_lookup_candidates.assert_not_called()
    assert session.working["OwnerId"] == "005A"


@pytest.mark.asyncio
async def test_clear_resets_field(session, data_access, settings):
    """Test clearing a lookup field."""
    controller = LookupSearchController(session, data_access, settings)
    controller.select("OwnerId", "005A", "Ada Lovelace")

    controller.clear("OwnerId")

    state = session.lookup("OwnerId")
    assert session.working["OwnerId"] == ""
    assert state.selected_label is None
    assert state.search_term == ""
    assert state.options == []
    assert state.status == LookupStatus.IDLE


@pytest.mark.asyncio
async def test_blur_closes_dropdown_after_grace(session, data_access, settings):
    """Test that blur closes the dropdown only after the grace delay."""
    controller = LookupSearchController(session, data_access, settings)
    controller.on_input("OwnerId", "ad")
    await controller.wait("OwnerId")

    controller.blur("OwnerId")
    assert session.lookup("OwnerId").dropdown_open is True

    await controller.wait("OwnerId")
    assert session.lookup("OwnerId").dropdown_open is False


@pytest.mark.asyncio
async def test_fields_are_independent(session, data_access, settings):
    """Test that typing in one lookup does not cancel another lookup's search."""
    controller = LookupSearchController(session, data_access, settings)

    controller.on_input("OwnerId", "ada")
    controller.on_input("ParentId", "acme")
    await controller.wait()

    assert data_access.search_lookup_candidates.await_count == 2
    data_access.search_lookup_candidates.assert_any_await("User", "ada", 50)
    data_access.search_lookup_candidates.assert_any_await("Account", "acme", 50)
    assert [o.value for o in session.lookup("OwnerId").options] == ["User:ada"]
    assert [o.value for o in session.lookup("ParentId").options] == ["Account:acme"]


@pytest.mark.asyncio
async def test_closing_session_cancels_pending_searches(session, data_access, settings):
    """Test that no search fires after the session is closed."""
    controller = LookupSearchController(session, data_access, settings)

    controller.on_input("OwnerId", "ada")
    session.close()
    await asyncio.sleep(0.05)

    data_access.search_lookup_candidates.assert_not_called()
    assert session.timers() == []
