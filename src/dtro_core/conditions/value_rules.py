"""Comparison rules over ordered values.

Value rules are the atomic predicates carried by conditions, e.g. a
vehicle height of ``<=4.2`` or a driver age of ``>=21``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

from ..exceptions import ConditionParseError, UnknownOperatorError


class ValueRule(ABC):
    """Predicate over a totally ordered value type."""

    @abstractmethod
    def apply(self, value: Any) -> bool:
        """Check whether ``value`` satisfies the rule."""

    @abstractmethod
    def contradicts(self, other: Optional["ValueRule"]) -> bool:
        """Check whether no value can satisfy both this rule and ``other``."""

    @abstractmethod
    def inverted(self) -> "ValueRule":
        """Return the logical negation of this rule."""


@dataclass(frozen=True)
class EqualityRule(ValueRule):
    value: Any

    def apply(self, value: Any) -> bool:
        return value == self.value

    def contradicts(self, other: Optional[ValueRule]) -> bool:
        if isinstance(other, EqualityRule):
            return not self.apply(other.value)
        if isinstance(other, InequalityRule):
            return other.value == self.value
        if isinstance(other, (LessThanRule, MoreThanRule)):
            return not other.apply(self.value)
        if isinstance(other, (AndRule, OrRule)):
            return other.contradicts(self)
        return False

    def inverted(self) -> ValueRule:
        return InequalityRule(self.value)

    def __str__(self) -> str:
        return f"=={self.value}"


@dataclass(frozen=True)
class InequalityRule(ValueRule):
    value: Any

    def apply(self, value: Any) -> bool:
        return value != self.value

    def contradicts(self, other: Optional[ValueRule]) -> bool:
        if isinstance(other, EqualityRule):
            return self.apply(other.value)
        if isinstance(other, (AndRule, OrRule)):
            return other.contradicts(self)
        return False

    def inverted(self) -> ValueRule:
        return EqualityRule(self.value)

    def __str__(self) -> str:
        return f"!={self.value}"


@dataclass(frozen=True)
class LessThanRule(ValueRule):
    value: Any
    inclusive: bool = False

    def apply(self, value: Any) -> bool:
        return self.value > value or (self.inclusive and self.value == value)

    def contradicts(self, other: Optional[ValueRule]) -> bool:
        # The other rule's inclusivity is not considered.
        if isinstance(other, (EqualityRule, MoreThanRule)):
            return not self.apply(other.value)
        if isinstance(other, (AndRule, OrRule)):
            return other.contradicts(self)
        return False

    def inverted(self) -> ValueRule:
        return MoreThanRule(self.value, not self.inclusive)

    def __str__(self) -> str:
        return f"<={self.value}" if self.inclusive else f"<{self.value}"


@dataclass(frozen=True)
class MoreThanRule(ValueRule):
    value: Any
    inclusive: bool = False

    def apply(self, value: Any) -> bool:
        return value > self.value or (self.inclusive and value == self.value)

    def contradicts(self, other: Optional[ValueRule]) -> bool:
        # The other rule's inclusivity is not considered.
        if isinstance(other, (EqualityRule, LessThanRule)):
            return not self.apply(other.value)
        if isinstance(other, (AndRule, OrRule)):
            return other.contradicts(self)
        return False

    def inverted(self) -> ValueRule:
        return LessThanRule(self.value, not self.inclusive)

    def __str__(self) -> str:
        return f">={self.value}" if self.inclusive else f">{self.value}"


@dataclass(frozen=True)
class AndRule(ValueRule):
    first: ValueRule
    second: ValueRule

    def apply(self, value: Any) -> bool:
        return self.first.apply(value) and self.second.apply(value)

    def contradicts(self, other: Optional[ValueRule]) -> bool:
        if other is None:
            return False
        return other.contradicts(self.first) or other.contradicts(self.second)

    def inverted(self) -> ValueRule:
        return OrRule(self.first.inverted(), self.second.inverted())

    def __str__(self) -> str:
        return f"({self.first} && {self.second})"


@dataclass(frozen=True)
class OrRule(ValueRule):
    first: ValueRule
    second: ValueRule

    def apply(self, value: Any) -> bool:
        return self.first.apply(value) or self.second.apply(value)

    def contradicts(self, other: Optional[ValueRule]) -> bool:
        if other is None:
            return False
        return other.contradicts(self.first) and other.contradicts(self.second)

    def inverted(self) -> ValueRule:
        return AndRule(self.first.inverted(), self.second.inverted())

    def __str__(self) -> str:
        return f"({self.first} || {self.second})"


def any_of(values: Iterable[Any]) -> Optional[ValueRule]:
    """Fold values into an OR of equality rules. Returns None for no values."""
    rule: Optional[ValueRule] = None
    for value in values:
        equality = EqualityRule(value)
        rule = equality if rule is None else OrRule(rule, equality)
    return rule


def _rule_for_operator(operator: str, value: Any) -> ValueRule:
    lowered = operator.lower()
    inclusive = lowered.endswith("orequalto")
    if lowered.startswith("equalto"):
        return EqualityRule(value)
    if lowered.startswith("greaterthan"):
        return MoreThanRule(value, inclusive)
    if lowered.startswith("lessthan"):
        return LessThanRule(value, inclusive)
    raise UnknownOperatorError(
        message=f"Unknown comparison operator '{operator}'",
        operator=operator,
    )


def parse_value_rule(
    data: Any,
    value_type: Callable[[Any], Any] = float,
    operator_key: str = "operator",
    value_key: str = "value",
) -> ValueRule:
    """
    Read a value rule from its JSON form.

    The JSON form is a list of one or two ``{operator, value}`` objects;
    a single object is accepted as a one-item list. Two items are
    combined with AND.

    Args:
        data: The decoded JSON.
        value_type: Converter applied to each value.
        operator_key: Name of the operator property.
        value_key: Name of the value property.

    Returns:
        The parsed rule.

    Raises:
        UnknownOperatorError: If an operator is not recognised.
        ConditionParseError: If the item count or shape is wrong.
    """
    items = [data] if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise ConditionParseError(message="Value rule must be an array of comparisons")

    rules: List[ValueRule] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if operator_key not in item or value_key not in item:
            raise ConditionParseError(
                message=f"Value rule items require '{operator_key}' and '{value_key}'",
                details={"item": item},
            )
        operator = item[operator_key]
        if not isinstance(operator, str):
            raise UnknownOperatorError(
                message=f"Unknown comparison operator '{operator}'",
                operator=str(operator),
            )
        try:
            value = value_type(item[value_key])
        except (TypeError, ValueError) as exc:
            raise ConditionParseError(
                message=f"Invalid value for '{value_key}': {item[value_key]!r}"
            ) from exc
        rules.append(_rule_for_operator(operator, value))

    if len(rules) == 1:
        return rules[0]
    if len(rules) == 2:
        return AndRule(rules[0], rules[1])
    raise ConditionParseError(
        message=f"Value rule must contain one or two comparisons, got {len(rules)}"
    )
