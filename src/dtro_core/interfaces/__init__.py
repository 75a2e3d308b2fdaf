"""Interface definitions for the DTRO core."""

from .cache import IDtroCache
from .projection import ISpatialProjectionService
from .rules import IJsonLogicRuleSource, JsonLogicRule
from .storage import IStorageService
from .validation import (
    IConditionValidationService,
    IJsonLogicValidationService,
    IJsonSchemaValidationService,
    ISemanticValidationService,
)

__all__ = [
    "IDtroCache",
    "ISpatialProjectionService",
    "IJsonLogicRuleSource",
    "JsonLogicRule",
    "IStorageService",
    "IConditionValidationService",
    "IJsonLogicValidationService",
    "IJsonSchemaValidationService",
    "ISemanticValidationService",
]
