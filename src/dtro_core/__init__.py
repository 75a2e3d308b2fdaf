"""
DTRO Core

Semantic validation and search indexing for Digital Traffic Regulation Orders.
"""

__version__ = "0.1.0"

# Export main components
from .models.dtro import Dtro, SchemaVersion, merge_for_update
from .models.geometry import BoundingBox, Coordinates, Crs
from .models.search import DtroEventSearch, DtroSearch, SearchQuery
from .models.validation import SemanticValidationError
from .conditions import parse_condition, parse_conditions
from .indexing import infer_index_fields
from .projection import SpatialProjectionService
from .search import DtroMappingService, DtrosFilteringService
from .validation import (
    ConditionValidationService,
    JsonLogicValidationService,
    JsonSchemaValidationService,
    SemanticValidationService,
)
from .storage import (
    DatabaseManager,
    FileStorageService,
    InMemoryStorageService,
    MultiStorageService,
    SqlStorageService,
)
from .config import ServiceSettings
from .service import DtroService

__all__ = [
    "Dtro",
    "SchemaVersion",
    "merge_for_update",
    "BoundingBox",
    "Coordinates",
    "Crs",
    "DtroEventSearch",
    "DtroSearch",
    "SearchQuery",
    "SemanticValidationError",
    "parse_condition",
    "parse_conditions",
    "infer_index_fields",
    "SpatialProjectionService",
    "DtroMappingService",
    "DtrosFilteringService",
    "ConditionValidationService",
    "JsonLogicValidationService",
    "JsonSchemaValidationService",
    "SemanticValidationService",
    "DatabaseManager",
    "FileStorageService",
    "InMemoryStorageService",
    "MultiStorageService",
    "SqlStorageService",
    "ServiceSettings",
    "DtroService",
]
