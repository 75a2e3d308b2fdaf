"""Custom exceptions for DTRO validation, indexing and storage."""

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class DtroError(Exception):
    """
    Base exception for DTRO processing errors.

    Attributes:
        message: Human-readable error description.
        details: Additional error details.
    """
    message: str
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


@dataclass
class StructuralValidationError(DtroError):
    """Raised when a payload does not conform to its JSON schema."""
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = list(self.errors)
        return result


@dataclass
class SemanticValidationFailedError(DtroError):
    """
    Raised when declarative rules or condition checks reject a payload.

    The errors are SemanticValidationError instances carrying a message
    and the path of the offending element.
    """
    errors: List[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["errors"] = [error.to_dict() for error in self.errors]
        return result


@dataclass
class SchemaNotFoundError(DtroError):
    """Raised when no schema exists for a requested schema version."""
    version: Optional[str] = None


@dataclass
class DtroNotFoundError(DtroError):
    """Raised when a DTRO does not exist or has been deleted."""
    dtro_id: Optional[str] = None


@dataclass
class InvariantViolationError(DtroError):
    """
    Raised when input is malformed beyond what the schema catches.

    These errors indicate a code/data mismatch and are reported as
    server errors rather than validation failures.
    """


@dataclass
class UnsupportedGeometryError(InvariantViolationError):
    """Raised for a geometry type other than Point, LineString or Polygon."""
    geometry_type: Optional[str] = None


@dataclass
class ConditionParseError(InvariantViolationError):
    """Raised when a condition or value rule cannot be read."""


@dataclass
class UnknownConditionError(ConditionParseError):
    """Raised when a condition object matches no known condition type."""


@dataclass
class UnknownOperatorError(ConditionParseError):
    """Raised when a value rule names an unknown comparison operator."""
    operator: Optional[str] = None


@dataclass
class PageOutOfRangeError(DtroError):
    """Raised when a requested page lies beyond the last page of results."""
    page: Optional[int] = None
    total_pages: Optional[int] = None


@dataclass
class InvalidRequestError(DtroError):
    """Raised for malformed search or event requests."""


@dataclass
class StorageError(DtroError):
    """
    Raised when every storage backend failed an operation.

    Attributes:
        failures: The exceptions raised by the individual backends.
    """
    failures: List[Exception] = field(default_factory=list)


@dataclass
class StorageCapabilityError(StorageError):
    """Raised when no configured storage backend supports search."""
