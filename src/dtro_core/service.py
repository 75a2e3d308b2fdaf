"""DTRO service facade.

Wires validation, index inference, storage, caching and search into the
operations exposed over HTTP: create, update, get, delete, search, events
and schema listing.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from .caching import DtroCache, NoopDtroCache, SimpleCache
from .config.rule_source import FileJsonLogicRuleSource
from .config.settings import ServiceSettings
from .exceptions import (
    DtroNotFoundError,
    InvalidRequestError,
    SemanticValidationFailedError,
    StructuralValidationError,
)
from .interfaces.cache import IDtroCache
from .interfaces.storage import IStorageService
from .interfaces.validation import (
    IJsonLogicValidationService,
    IJsonSchemaValidationService,
    ISemanticValidationService,
)
from .models.dtro import Dtro, utc_now
from .models.search import (
    DtroEventSearch,
    DtroEventSearchResult,
    DtroSearch,
    PaginatedResponse,
)
from .models.validation import SchemaDefinition
from .projection.spatial_projection import SpatialProjectionService
from .search.filtering import DtrosFilteringService, check_page_exists
from .search.mapping import DtroMappingService
from .storage.database import DatabaseManager
from .storage.factory import create_storage_service
from .validation.condition_validation import ConditionValidationService
from .validation.json_logic_validation import JsonLogicValidationService
from .validation.json_schema_validation import JsonSchemaValidationService
from .validation.semantic_validation import SemanticValidationService


logger = logging.getLogger(__name__)


def _not_found(dtro_id: str) -> DtroNotFoundError:
    return DtroNotFoundError(message=f"D-TRO with id {dtro_id} not found", dtro_id=str(dtro_id))


class DtroService:
    """
    Orchestrates DTRO operations.

    Every write is validated in three stages before it reaches storage:
    JSON schema, declarative JSON-logic rules, then semantic checks. The
    first stage that reports errors stops the request.
    """

    def __init__(
        self,
        storage: IStorageService,
        schema_validation_service: IJsonSchemaValidationService,
        json_logic_validation_service: IJsonLogicValidationService,
        semantic_validation_service: ISemanticValidationService,
        filtering_service: DtrosFilteringService,
        mapping_service: DtroMappingService,
        cache: Optional[IDtroCache] = None,
    ):
        self._storage = storage
        self._schema_validation_service = schema_validation_service
        self._json_logic_validation_service = json_logic_validation_service
        self._semantic_validation_service = semantic_validation_service
        self._filtering_service = filtering_service
        self._mapping_service = mapping_service
        self._cache = cache or NoopDtroCache()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[ServiceSettings] = None,
        db_manager: Optional[DatabaseManager] = None,
    ) -> "DtroService":
        """
        Build a service with every collaborator created from settings.

        Args:
            settings: Service settings; read from the environment if None.
            db_manager: Database manager to reuse for SQL storage.
        """
        settings = settings or ServiceSettings.from_env()

        projection_service = SpatialProjectionService()
        mapping_service = DtroMappingService(projection_service, settings.search_service_url)
        filtering_service = DtrosFilteringService(projection_service, settings.search_service_url)
        storage = create_storage_service(
            settings,
            projection_service,
            mapping_service,
            filtering_service,
            db_manager=db_manager,
        )

        if settings.enable_cache:
            cache: IDtroCache = DtroCache(
                SimpleCache(max_size=settings.cache_max_size, ttl=settings.cache_ttl_seconds)
            )
        else:
            cache = NoopDtroCache()

        return cls(
            storage=storage,
            schema_validation_service=JsonSchemaValidationService(settings.schema_dir),
            json_logic_validation_service=JsonLogicValidationService(
                FileJsonLogicRuleSource(settings.rules_dir)
            ),
            semantic_validation_service=SemanticValidationService(ConditionValidationService()),
            filtering_service=filtering_service,
            mapping_service=mapping_service,
            cache=cache,
        )

    @property
    def storage(self) -> IStorageService:
        return self._storage

    def validate_dtro(self, dtro: Dtro) -> None:
        """
        Run structural, rule-based and semantic validation.

        Raises:
            SchemaNotFoundError: If there is no schema for the DTRO's version.
            StructuralValidationError: If the payload violates its schema.
            SemanticValidationFailedError: If JSON-logic rules or semantic
                checks fail.
        """
        schema_text = self._schema_validation_service.get_schema_for_version(str(dtro.schema_version))

        structural_errors = self._schema_validation_service.validate(schema_text, dtro.data)
        if structural_errors:
            raise StructuralValidationError(
                message="DTRO does not conform to its schema",
                errors=structural_errors,
            )

        logic_errors = self._json_logic_validation_service.validate(dtro)
        if logic_errors:
            raise SemanticValidationFailedError(
                message="DTRO failed rule validation",
                errors=logic_errors,
            )

        semantic_errors = self._semantic_validation_service.validate(dtro)
        if semantic_errors:
            raise SemanticValidationFailedError(
                message="DTRO failed semantic validation",
                errors=semantic_errors,
            )

    @staticmethod
    def _from_payload(payload: Dict[str, Any]) -> Dtro:
        try:
            return Dtro.from_submission(payload)
        except ValueError as e:
            raise InvalidRequestError(message=str(e)) from e

    def create_dtro(self, payload: Dict[str, Any], correlation_id: Optional[str] = None) -> str:
        """
        Validate and store a new DTRO.

        Args:
            payload: Request body with ``schemaVersion`` and ``data``.
            correlation_id: Identifier of the creating request.

        Returns:
            The ID of the new DTRO.
        """
        dtro_id = str(uuid.uuid4())
        logger.info(f"[dtro.create] Creating DTRO with ID {dtro_id}")

        dtro = self._from_payload(payload)
        self.validate_dtro(dtro)

        dtro.last_updated = utc_now()
        dtro.created = dtro.last_updated
        dtro.last_updated_correlation_id = correlation_id
        dtro.created_correlation_id = correlation_id

        self._storage.save_dtro(dtro_id, dtro)
        self._cache.invalidate_dtro(dtro_id)
        self._cache.cache_dtro(self._storage.get_dtro_by_id(dtro_id))

        logger.info(f"[dtro.create] Successfully created DTRO with ID {dtro_id}")
        return dtro_id

    def update_dtro(self, dtro_id: str, payload: Dict[str, Any], correlation_id: Optional[str] = None) -> str:
        """
        Validate and replace an existing DTRO.

        Raises:
            DtroNotFoundError: If the DTRO does not exist or was deleted.
        """
        logger.info(f"[dtro.update] Updating DTRO with ID {dtro_id}")

        dtro = self._from_payload(payload)
        self.validate_dtro(dtro)

        dtro.last_updated = utc_now()
        dtro.last_updated_correlation_id = correlation_id

        if not self._storage.try_update_dtro(dtro_id, dtro):
            raise _not_found(dtro_id)

        self._cache.invalidate_dtro(dtro_id)
        self._cache.cache_dtro(self._storage.get_dtro_by_id(dtro_id))

        logger.info(f"[dtro.update] Successfully updated DTRO with ID {dtro_id}")
        return dtro_id

    def get_dtro(self, dtro_id: str) -> Dtro:
        """
        Get a live DTRO.

        Raises:
            DtroNotFoundError: If the DTRO does not exist or was deleted.
        """
        logger.info(f"[dtro.get_by_id] Getting DTRO with ID {dtro_id}")

        dtro = self._cache.get_dtro(dtro_id)
        if dtro is None:
            dtro = self._storage.get_dtro_by_id(dtro_id)
            self._cache.cache_dtro(dtro)

        if dtro.deleted:
            raise _not_found(dtro_id)
        return dtro

    def dtro_exists(self, dtro_id: str) -> bool:
        cached = self._cache.get_dtro_exists(dtro_id)
        if cached is not None:
            return cached
        exists = self._storage.dtro_exists(dtro_id)
        self._cache.cache_dtro_exists(dtro_id, exists)
        return exists

    def delete_dtro(self, dtro_id: str, deletion_time: Optional[datetime] = None) -> None:
        """
        Soft-delete a DTRO.

        Raises:
            DtroNotFoundError: If the DTRO does not exist or is already deleted.
        """
        logger.info(f"[dtro.delete] Deleting DTRO with ID {dtro_id}")

        if not self._storage.delete_dtro(dtro_id, deletion_time):
            raise _not_found(dtro_id)
        self._cache.invalidate_dtro(dtro_id)

    def search(self, criteria: DtroSearch) -> PaginatedResponse:
        """
        Find one page of DTROs matching any of the queries.

        Raises:
            InvalidRequestError: If a query's publication time is in the future.
            PageOutOfRangeError: If the page lies beyond the last page.
        """
        now = utc_now()
        if any(query.publication_time is not None and query.publication_time > now for query in criteria.queries):
            raise InvalidRequestError(
                message="The datetime for the publicationTime field cannot be in the future."
            )

        result = self._storage.search(criteria)
        check_page_exists(criteria.page, criteria.page_size, result.total_count)

        logger.info(f"[dtro.search] Found {result.total_count} DTROs matching the criteria")
        return PaginatedResponse(
            results=self._mapping_service.map_to_search_result(result.results),
            page=criteria.page,
            total_count=result.total_count,
        )

    def events(self, search: DtroEventSearch) -> DtroEventSearchResult:
        """
        List create, update and delete events.

        Raises:
            InvalidRequestError: If ``since`` is in the future.
        """
        if search.since is not None and search.since > utc_now():
            raise InvalidRequestError(
                message="The datetime for the since field cannot be in the future."
            )

        dtros = self._storage.search_for_events(search)
        return self._filtering_service.filter_events(dtros, search)

    def list_schemas(self) -> List[SchemaDefinition]:
        return self._schema_validation_service.list_schemas()

    def get_schema(self, version: str) -> Dict[str, Any]:
        """
        Get the JSON schema for a version.

        Raises:
            SchemaNotFoundError: If no schema exists for the version.
        """
        return json.loads(self._schema_validation_service.get_schema_for_version(version))
