"""Validation result models."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class SemanticValidationError:
    """
    A single rejection reason for a submitted document.

    Attributes:
        message: Human-readable description.
        path: Location of the offending element in the payload.
        details: Optional extra diagnostics.
    """
    message: str
    path: Optional[str] = None
    details: Optional[Dict[str, Any]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"message": self.message, "path": self.path}
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class SchemaDefinition:
    """An available JSON schema version."""
    version: str
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return {"schemaVersion": self.version, "_links": {"self": self.location}}
