"""Data models for the DTRO core."""

from .enums import ComparisonOperator, ConditionOperator, DtroEventType, StorageBackend
from .geometry import BoundingBox, Coordinates, Crs
from .dtro import (
    Dtro,
    MUTABLE_FIELDS,
    SchemaVersion,
    WRITE_ONCE_FIELDS,
    merge_for_update,
    parse_datetime,
    utc_now,
)
from .search import (
    DtroEvent,
    DtroEventSearch,
    DtroEventSearchResult,
    DtroExtractedData,
    DtroSearch,
    DtroSearchResult,
    Location,
    PaginatedResponse,
    PaginatedResult,
    SearchQuery,
    ValueCondition,
)
from .validation import SchemaDefinition, SemanticValidationError

__all__ = [
    "ComparisonOperator",
    "ConditionOperator",
    "DtroEventType",
    "StorageBackend",
    "BoundingBox",
    "Coordinates",
    "Crs",
    "Dtro",
    "MUTABLE_FIELDS",
    "SchemaVersion",
    "WRITE_ONCE_FIELDS",
    "merge_for_update",
    "parse_datetime",
    "utc_now",
    "DtroEvent",
    "DtroEventSearch",
    "DtroEventSearchResult",
    "DtroExtractedData",
    "DtroSearch",
    "DtroSearchResult",
    "Location",
    "PaginatedResponse",
    "PaginatedResult",
    "SearchQuery",
    "ValueCondition",
    "SchemaDefinition",
    "SemanticValidationError",
]
