"""Condition tree model.

A regulation's conditions form a tree whose inner nodes are
``ConditionSet`` instances and whose leaves describe road, occupant,
driver, access, permit or vehicle attributes. Leaf attributes are held as
value rules so that two leaves of the same kind can be checked for
contradiction attribute by attribute.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from typing import Callable, Dict, Optional, Tuple

from ..models.enums import ConditionOperator
from .value_rules import AndRule, EqualityRule, InequalityRule, OrRule, ValueRule


def rules_contradict(first: ValueRule, second: ValueRule) -> bool:
    """
    Check two rules on the same attribute for contradiction.

    The result does not depend on argument order. OR rules on either side
    are split first and contradict only if every branch does; AND rules
    are split next and contradict if either part does. Between simple
    rules an equality decides against an inequality, and any other pair
    contradicts if either rule reports it.
    """
    for rule, other in ((first, second), (second, first)):
        if isinstance(rule, OrRule):
            return rules_contradict(rule.first, other) and rules_contradict(rule.second, other)
    for rule, other in ((first, second), (second, first)):
        if isinstance(rule, AndRule):
            return rules_contradict(rule.first, other) or rules_contradict(rule.second, other)

    if isinstance(first, InequalityRule) and isinstance(second, EqualityRule):
        return second.contradicts(first)
    if isinstance(first, EqualityRule) and isinstance(second, InequalityRule):
        return first.contradicts(second)
    return first.contradicts(second) or second.contradicts(first)


class Condition(ABC):
    """A node of a condition tree."""

    negate: bool

    @abstractmethod
    def negated(self) -> "Condition":
        """Return a copy with the negation flag toggled."""

    @abstractmethod
    def evaluate(self, truth: Callable[["LeafCondition"], bool]) -> bool:
        """
        Evaluate the tree.

        Args:
            truth: Truth value of each leaf in its non-negated form.
        """


@dataclass(frozen=True)
class ConditionSet(Condition):
    """Conditions combined with AND, OR or XOR."""
    operator: ConditionOperator = ConditionOperator.AND
    conditions: Tuple[Condition, ...] = ()
    negate: bool = False

    def negated(self) -> "ConditionSet":
        return replace(self, negate=not self.negate)

    def evaluate(self, truth: Callable[["LeafCondition"], bool]) -> bool:
        values = [condition.evaluate(truth) for condition in self.conditions]
        if self.operator == ConditionOperator.AND:
            result = all(values)
        elif self.operator == ConditionOperator.OR:
            result = any(values)
        else:
            result = sum(values) % 2 == 1
        return result != self.negate

    @classmethod
    def and_(cls, *conditions: Condition, negate: bool = False) -> "ConditionSet":
        return cls(ConditionOperator.AND, tuple(conditions), negate)

    @classmethod
    def or_(cls, *conditions: Condition, negate: bool = False) -> "ConditionSet":
        return cls(ConditionOperator.OR, tuple(conditions), negate)

    @classmethod
    def xor(cls, *conditions: Condition, negate: bool = False) -> "ConditionSet":
        return cls(ConditionOperator.XOR, tuple(conditions), negate)


@dataclass(frozen=True)
class LeafCondition(Condition):
    """
    Base class for conditions on a single subject.

    Every field other than ``negate`` is an optional value rule.
    """
    negate: bool = False

    def negated(self) -> "LeafCondition":
        return replace(self, negate=not self.negate)

    def positive(self) -> "LeafCondition":
        """Return this condition without negation."""
        return replace(self, negate=False)

    def evaluate(self, truth: Callable[["LeafCondition"], bool]) -> bool:
        return truth(self.positive()) != self.negate

    def attribute_rules(self) -> Dict[str, ValueRule]:
        """Return the populated attribute rules keyed by field name."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "negate" and getattr(self, f.name) is not None
        }

    def effective_rules(self) -> Optional[Dict[str, ValueRule]]:
        """
        Return rules equivalent to this condition, negation included.

        A negated condition over several attributes cannot be expressed
        attribute by attribute, so None is returned for it.
        """
        rules = self.attribute_rules()
        if not self.negate:
            return rules
        if len(rules) == 1:
            name, rule = next(iter(rules.items()))
            return {name: rule.inverted()}
        return None

    def contradicts(self, other: "LeafCondition") -> bool:
        """Check whether this condition and ``other`` can never both hold."""
        if type(other) is not type(self):
            return False

        mine = self.effective_rules()
        theirs = other.effective_rules()
        if mine is not None and theirs is not None:
            return any(
                name in theirs and rules_contradict(rule, theirs[name])
                for name, rule in mine.items()
            )
        if mine is None and theirs is not None and not other.negate:
            return self._implied_by(other)
        if theirs is None and mine is not None and not self.negate:
            return other._implied_by(self)
        return False

    def _implied_by(self, other: "LeafCondition") -> bool:
        other_rules = other.attribute_rules()
        return all(
            other_rules.get(name) == rule
            for name, rule in self.attribute_rules().items()
        )


@dataclass(frozen=True)
class RoadCondition(LeafCondition):
    road_type: Optional[ValueRule] = None


@dataclass(frozen=True)
class OccupantCondition(LeafCondition):
    disabled_with_permit: Optional[ValueRule] = None
    numbers_of_occupants: Optional[ValueRule] = None


@dataclass(frozen=True)
class DriverCondition(LeafCondition):
    driver_characteristics_type: Optional[ValueRule] = None
    license_characteristics: Optional[ValueRule] = None
    age_of_driver: Optional[ValueRule] = None
    time_drivers_license_held: Optional[ValueRule] = None


@dataclass(frozen=True)
class AccessCondition(LeafCondition):
    access_condition_type: Optional[ValueRule] = None
    other_access_restriction: Optional[ValueRule] = None


@dataclass(frozen=True)
class PermitCondition(LeafCondition):
    type: Optional[ValueRule] = None
    authority: Optional[ValueRule] = None


@dataclass(frozen=True)
class VehicleCondition(LeafCondition):
    vehicle_type: Optional[ValueRule] = None
    vehicle_usage: Optional[ValueRule] = None
    fuel_type: Optional[ValueRule] = None
    year_of_first_registration: Optional[ValueRule] = None
    gross_weight: Optional[ValueRule] = None
    height: Optional[ValueRule] = None
    length: Optional[ValueRule] = None
    width: Optional[ValueRule] = None
    heaviest_axle_weight: Optional[ValueRule] = None
    number_of_axles: Optional[ValueRule] = None
