"""Data access factory."""

import logging
from typing import Optional

from recordview.core.config import Settings
from recordview.services.data_access.base import DataAccessService
from recordview.services.data_access.memory_service import InMemoryDataAccessService

logger = logging.getLogger(__name__)


class DataAccessFactory:
    """The factory for the data access services."""

    @staticmethod
    def create_service(settings: Settings) -> Optional[DataAccessService]:
        """Create a data access service."""
        provider = settings.data_access_provider
        logger.info(f"Creating data access service of type: {provider}")

        if provider == "memory":
            logger.info("Using InMemoryDataAccessService with sample data")
            return InMemoryDataAccessService.with_sample_data(settings)
        elif provider == "memory-empty":
            logger.info("Using empty InMemoryDataAccessService")
            return InMemoryDataAccessService(settings)
        else:
            logger.warning(f"No data access service found for type: {provider}")
            return None
