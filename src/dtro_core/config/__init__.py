"""Configuration for the DTRO core."""

from .models import ConfigurationError, RuleSet, ValidationResult
from .rule_source import FileJsonLogicRuleSource, JsonLogicRuleLoader
from .settings import ServiceSettings

__all__ = [
    "ConfigurationError",
    "RuleSet",
    "ValidationResult",
    "FileJsonLogicRuleSource",
    "JsonLogicRuleLoader",
    "ServiceSettings",
]
