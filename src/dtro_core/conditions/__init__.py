"""Value rules and condition trees."""

from .value_rules import (
    AndRule,
    EqualityRule,
    InequalityRule,
    LessThanRule,
    MoreThanRule,
    OrRule,
    ValueRule,
    any_of,
    parse_value_rule,
)
from .conditions import (
    AccessCondition,
    Condition,
    ConditionSet,
    DriverCondition,
    LeafCondition,
    OccupantCondition,
    PermitCondition,
    RoadCondition,
    VehicleCondition,
)
from .parser import parse_condition, parse_conditions

__all__ = [
    "AndRule",
    "EqualityRule",
    "InequalityRule",
    "LessThanRule",
    "MoreThanRule",
    "OrRule",
    "ValueRule",
    "any_of",
    "parse_value_rule",
    "AccessCondition",
    "Condition",
    "ConditionSet",
    "DriverCondition",
    "LeafCondition",
    "OccupantCondition",
    "PermitCondition",
    "RoadCondition",
    "VehicleCondition",
    "parse_condition",
    "parse_conditions",
]
