"""In-process registry of record viewers."""

import logging
import uuid
from typing import Dict, Optional

from recordview.core.config import Settings
from recordview.services.data_access.base import DataAccessService
from recordview.services.record_viewer import RecordViewer

logger = logging.getLogger(__name__)


class ViewerRegistry:
    """Holds the viewers opened by UI clients, keyed by a generated id."""

    def __init__(self, data_access: DataAccessService, settings: Settings):
        self.data_access = data_access
        self.settings = settings
        self._viewers: Dict[str, RecordViewer] = {}

    def create(self, object_type: str) -> tuple:
        viewer_id = uuid.uuid4().hex
        viewer = RecordViewer(object_type, self.data_access, self.settings)
        self._viewers[viewer_id] = viewer
        logger.info(f"Created viewer {viewer_id} for {object_type}")
        return viewer_id, viewer

    def get(self, viewer_id: str) -> Optional[RecordViewer]:
        return self._viewers.get(viewer_id)

    def remove(self, viewer_id: str) -> bool:
        viewer = self._viewers.pop(viewer_id, None)
        if viewer is None:
            logger.warning(f"Viewer {viewer_id} not found")
            return False
        viewer.close()
        logger.info(f"Removed viewer {viewer_id}")
        return True

    def close_all(self) -> None:
        for viewer_id in list(self._viewers):
            self.remove(viewer_id)
