"""Validation services for DTRO submissions."""

from .condition_validation import (
    ALWAYS_FALSE_MESSAGE,
    ConditionValidationService,
    expand_xor,
    propagate_negation,
    to_dnf,
)
from .json_logic_validation import JsonLogicValidationService, MINIMUM_RULES_VERSION
from .json_schema_validation import JsonSchemaValidationService
from .semantic_validation import SemanticValidationService

__all__ = [
    "ALWAYS_FALSE_MESSAGE",
    "ConditionValidationService",
    "expand_xor",
    "propagate_negation",
    "to_dnf",
    "JsonLogicValidationService",
    "MINIMUM_RULES_VERSION",
    "JsonSchemaValidationService",
    "SemanticValidationService",
]
