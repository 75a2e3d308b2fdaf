"""Construction of the configured storage backend."""

import logging
from typing import List, Optional

from ..config.settings import ServiceSettings
from ..interfaces.projection import ISpatialProjectionService
from ..interfaces.storage import IStorageService
from ..models.enums import StorageBackend
from ..search.filtering import DtrosFilteringService
from ..search.mapping import DtroMappingService
from .database import DatabaseManager
from .file_storage import FileStorageService
from .memory_storage import InMemoryStorageService
from .multi_storage import MultiStorageService
from .sql_storage import SqlStorageService


logger = logging.getLogger(__name__)


def create_storage_service(
    settings: ServiceSettings,
    projection_service: ISpatialProjectionService,
    mapping_service: DtroMappingService,
    filtering_service: DtrosFilteringService,
    db_manager: Optional[DatabaseManager] = None,
) -> IStorageService:
    """
    Build the storage backends named in ``settings.storage_backends``.

    A single backend is returned as is; several are wrapped in a
    MultiStorageService in the configured order.

    Args:
        settings: Service settings.
        projection_service: Projection used by SQL location queries.
        mapping_service: Index-field inference for every backend.
        filtering_service: In-memory matching for the memory backend.
        db_manager: Database manager to reuse for the SQL backend.

    Returns:
        The storage service.
    """
    services: List[IStorageService] = []
    for backend in settings.storage_backends:
        if backend == StorageBackend.SQL:
            manager = db_manager or DatabaseManager(database_url=settings.database_url)
            manager.init_database()
            services.append(SqlStorageService(manager, projection_service, mapping_service))
        elif backend == StorageBackend.FILE:
            services.append(FileStorageService(settings.file_storage_dir, mapping_service))
        else:
            services.append(InMemoryStorageService(mapping_service, filtering_service))

    if not services:
        raise ValueError("At least one storage backend must be configured")

    logger.info(
        f"Using storage backends: {', '.join(backend.value for backend in settings.storage_backends)}"
    )
    if len(services) == 1:
        return services[0]
    return MultiStorageService(services, write_to_first_only=settings.write_to_first_only)
