"""Data models for configuration management."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..interfaces.rules import JsonLogicRule


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )


class ConfigurationError(Exception):
    """Exception raised for invalid configuration or rule files."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result


@dataclass
class RuleSet:
    """The JSON-logic rules loaded for one rule key."""
    key: str
    rules: List[JsonLogicRule] = field(default_factory=list)
    source: Optional[str] = None
