"""Validation service interfaces for the DTRO core."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.dtro import Dtro
from ..models.validation import SchemaDefinition, SemanticValidationError


class IConditionValidationService(ABC):
    """Interface for condition satisfiability checks."""

    @abstractmethod
    def validate(
        self, condition: Any, path: Optional[str] = None
    ) -> List[SemanticValidationError]:
        """Return an error if the condition tree can never be satisfied."""
        pass


class IJsonLogicValidationService(ABC):
    """Interface for declarative business-rule evaluation."""

    @abstractmethod
    def validate(self, dtro: Dtro) -> List[SemanticValidationError]:
        """Evaluate the rules for the document's schema version."""
        pass


class IJsonSchemaValidationService(ABC):
    """Interface for structural validation against JSON schemas."""

    @abstractmethod
    def get_schema_for_version(self, version: str) -> str:
        """
        Get the schema text for a schema version.

        Raises:
            SchemaNotFoundError: If no schema exists for the version.
        """
        pass

    @abstractmethod
    def validate(self, schema_text: str, document: Dict[str, Any]) -> List[str]:
        """Validate a document and return error messages."""
        pass

    @abstractmethod
    def list_schemas(self) -> List[SchemaDefinition]:
        """List the available schema versions."""
        pass


class ISemanticValidationService(ABC):
    """Interface for validation beyond the JSON schema."""

    @abstractmethod
    def validate(self, dtro: Dtro) -> List[SemanticValidationError]:
        """Validate coordinates and conditions of a document."""
        pass
