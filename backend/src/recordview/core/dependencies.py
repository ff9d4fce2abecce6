"""Dependencies for the application using FastAPI app state for singletons."""

import logging

from fastapi import Depends, HTTPException, Path, Request, status

from recordview.core.config import Settings, get_settings
from recordview.services.record_viewer import RecordViewer
from recordview.services.viewer_registry import ViewerRegistry

logger = logging.getLogger(__name__)


def get_viewer_registry(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ViewerRegistry:
    """Get the viewer registry from application state."""
    if not hasattr(request.app.state, "viewer_registry"):
        raise ValueError("Viewer registry not initialized in application state")

    return request.app.state.viewer_registry


def get_viewer(
    viewer_id: str = Path(..., description="The ID of the viewer"),
    registry: ViewerRegistry = Depends(get_viewer_registry),
) -> RecordViewer:
    """Get a viewer by ID, or 404."""
    viewer = registry.get(viewer_id)
    if viewer is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Viewer with ID {viewer_id} not found",
        )
    return viewer
