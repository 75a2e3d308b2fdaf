"""Enumerations for the DTRO core."""

from enum import Enum
from typing import Any, Optional


class ComparisonOperator(Enum):
    """Operators usable in date comparisons of a search query."""
    EQUAL = "equal"
    LESS_THAN = "lessThan"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"
    GREATER_THAN = "greaterThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"

    @classmethod
    def parse(cls, value: Any) -> Optional["ComparisonOperator"]:
        """Look up an operator by name, ignoring case. Returns None if unknown."""
        if not isinstance(value, str):
            return None
        lowered = value.lower()
        for operator in cls:
            if operator.value.lower() == lowered:
                return operator
        return None


class ConditionOperator(Enum):
    """Boolean operators combining the children of a condition set."""
    AND = "and"
    OR = "or"
    XOR = "xor"


class DtroEventType(Enum):
    """Kinds of events reported by the events endpoint."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class StorageBackend(Enum):
    """Storage backends that can be configured."""
    SQL = "sql"
    FILE = "file"
    MEMORY = "memory"
