"""Declarative rule source interface for the DTRO core."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class JsonLogicRule:
    """
    A JSON-logic business rule.

    Attributes:
        message: Error message reported when the rule evaluates to false.
        path: Payload path reported with the error.
        rule: The JSON-logic expression.
        name: Optional identifier of the rule.
    """
    message: str
    path: str
    rule: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None


class IJsonLogicRuleSource(ABC):
    """Interface for looking up JSON-logic rules by key."""

    @abstractmethod
    def get_rules(self, key: str) -> List[JsonLogicRule]:
        """
        Get the rules stored under a key such as ``"dtro-3.1.2"``.

        Returns:
            The rules, or an empty list when none exist for the key.
        """
        pass
