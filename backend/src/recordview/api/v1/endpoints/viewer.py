"""API endpoints for record viewer intents.

Every intent answers with the complete viewer state. Intent failures
(validation, no changes, transport errors) are part of that state and are
not HTTP errors.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from recordview.core.auth import jwt_auth
from recordview.core.dependencies import get_viewer, get_viewer_registry
from recordview.schemas.viewer_api import (
    FieldChangeRequest,
    LookupInputRequest,
    LookupSelectRequest,
    PageRequest,
    PageSizeRequest,
    SearchRequest,
    SortRequest,
    ViewerCreate,
    ViewerStateResponse,
)
from recordview.services.record_viewer import RecordViewer
from recordview.services.viewer_registry import ViewerRegistry

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(dependencies=[Depends(jwt_auth)])


def _state(viewer_id: str, viewer: RecordViewer) -> ViewerStateResponse:
    return ViewerStateResponse.from_viewer(viewer_id, viewer)


@router.post(
    "",
    response_model=ViewerStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a viewer",
    description="Open a viewer on an object type and load its records.",
)
async def create_viewer(
    viewer_create: ViewerCreate,
    registry: ViewerRegistry = Depends(get_viewer_registry),
) -> ViewerStateResponse:
    """Open a viewer and run the initial load."""
    viewer_id, viewer = registry.create(viewer_create.object_type)
    viewer.search_term = (viewer_create.search_term or "").strip()
    await viewer.load()
    return _state(viewer_id, viewer)


@router.get("/{viewer_id}", response_model=ViewerStateResponse, summary="Get viewer state")
async def get_viewer_state(
    viewer_id: str = Path(..., description="The ID of the viewer"),
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Get the current state of a viewer."""
    return _state(viewer_id, viewer)


@router.delete("/{viewer_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Close a viewer")
async def delete_viewer(
    viewer_id: str = Path(..., description="The ID of the viewer"),
    registry: ViewerRegistry = Depends(get_viewer_registry),
) -> Response:
    """Close a viewer and discard its state."""
    if not registry.remove(viewer_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Viewer with ID {viewer_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{viewer_id}/reload", response_model=ViewerStateResponse, summary="Reload records")
async def reload(viewer_id: str, viewer: RecordViewer = Depends(get_viewer)) -> ViewerStateResponse:
    """Reload records for the current search term."""
    await viewer.load()
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/search", response_model=ViewerStateResponse, summary="Search records")
async def search(
    request: SearchRequest,
    viewer_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Debounced search; the reload happens once typing settles."""
    viewer.search(request.search_term)
    await viewer.wait()
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/sort", response_model=ViewerStateResponse, summary="Sort the table")
async def sort(
    request: SortRequest,
    viewer_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Sort the table on a sortable column."""
    viewer.sort(request.field_name, request.direction)
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/page", response_model=ViewerStateResponse, summary="Change page")
async def change_page(
    request: PageRequest,
    viewer_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Go to a page, or move to the first, previous, next or last page."""
    if request.page_index is not None:
        viewer.go_to_page(request.page_index)
    elif request.move == "first":
        viewer.first_page()
    elif request.move == "prev":
        viewer.prev_page()
    elif request.move == "next":
        viewer.next_page()
    elif request.move == "last":
        viewer.last_page()
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/page-size", response_model=ViewerStateResponse, summary="Change page size")
async def change_page_size(
    request: PageSizeRequest,
    viewer_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Change the page size; unsupported sizes fall back to the default."""
    viewer.set_page_size(request.page_size)
    return _state(viewer_id, viewer)


@router.post(
    "/{viewer_id}/records/{record_id}/edit",
    response_model=ViewerStateResponse,
    summary="Open a record for edit",
)
async def start_edit(
    viewer_id: str,
    record_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Open a record in the edit form."""
    await viewer.start_edit(record_id)
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/new", response_model=ViewerStateResponse, summary="Start a new record")
async def start_create(viewer_id: str, viewer: RecordViewer = Depends(get_viewer)) -> ViewerStateResponse:
    """Open an empty create form."""
    await viewer.start_create()
    return _state(viewer_id, viewer)


@router.post(
    "/{viewer_id}/records/{record_id}/delete",
    response_model=ViewerStateResponse,
    summary="Request deletion of a record",
)
async def request_delete(
    viewer_id: str,
    record_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Mark a record for deletion; it is deleted only after confirmation."""
    viewer.request_delete(record_id)
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/delete/confirm", response_model=ViewerStateResponse, summary="Confirm deletion")
async def confirm_delete(viewer_id: str, viewer: RecordViewer = Depends(get_viewer)) -> ViewerStateResponse:
    """Delete the record awaiting confirmation and reload."""
    await viewer.confirm_delete()
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/delete/cancel", response_model=ViewerStateResponse, summary="Cancel deletion")
async def cancel_delete(viewer_id: str, viewer: RecordViewer = Depends(get_viewer)) -> ViewerStateResponse:
    """Drop the pending delete request."""
    viewer.cancel_delete()
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/session/fields", response_model=ViewerStateResponse, summary="Change a field")
async def change_field(
    request: FieldChangeRequest,
    viewer_id: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Write a value into the working copy of the open record."""
    viewer.change_field(request.field_name, request.value)
    return _state(viewer_id, viewer)


@router.post(
    "/{viewer_id}/session/lookup/{field_name}/input",
    response_model=ViewerStateResponse,
    summary="Type into a lookup field",
)
async def lookup_input(
    request: LookupInputRequest,
    viewer_id: str,
    field_name: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Debounced lookup search; answers once the search has settled."""
    viewer.lookup_input(field_name, request.text)
    await viewer.wait()
    return _state(viewer_id, viewer)


@router.post(
    "/{viewer_id}/session/lookup/{field_name}/select",
    response_model=ViewerStateResponse,
    summary="Select a lookup option",
)
async def lookup_select(
    request: LookupSelectRequest,
    viewer_id: str,
    field_name: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Select a lookup option for a field."""
    viewer.select_lookup_option(field_name, request.value, request.label)
    return _state(viewer_id, viewer)


@router.post(
    "/{viewer_id}/session/lookup/{field_name}/clear",
    response_model=ViewerStateResponse,
    summary="Clear a lookup field",
)
async def lookup_clear(
    viewer_id: str,
    field_name: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Clear the value and search state of a lookup field."""
    viewer.clear_lookup(field_name)
    return _state(viewer_id, viewer)


@router.post(
    "/{viewer_id}/session/lookup/{field_name}/blur",
    response_model=ViewerStateResponse,
    summary="Leave a lookup field",
)
async def lookup_blur(
    viewer_id: str,
    field_name: str,
    viewer: RecordViewer = Depends(get_viewer),
) -> ViewerStateResponse:
    """Close the lookup dropdown after the blur grace delay."""
    viewer.lookup_blur(field_name)
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/session/submit", response_model=ViewerStateResponse, summary="Save the record")
async def submit(viewer_id: str, viewer: RecordViewer = Depends(get_viewer)) -> ViewerStateResponse:
    """Validate and save the open record."""
    await viewer.submit()
    return _state(viewer_id, viewer)


@router.post("/{viewer_id}/session/cancel", response_model=ViewerStateResponse, summary="Discard the edit")
async def cancel_edit(viewer_id: str, viewer: RecordViewer = Depends(get_viewer)) -> ViewerStateResponse:
    """Discard the open record without saving."""
    viewer.cancel_edit()
    return _state(viewer_id, viewer)
