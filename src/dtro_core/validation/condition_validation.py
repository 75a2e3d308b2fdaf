"""Satisfiability checks for condition trees.

The tree is rewritten in three passes (XOR expansion, negation push-down,
DNF flattening) and the resulting conjunctions are scanned for pairs of
leaves that contradict each other.
"""

import logging
from itertools import combinations
from typing import List, Optional

from ..conditions.conditions import Condition, ConditionSet, LeafCondition
from ..exceptions import InvariantViolationError
from ..interfaces.validation import IConditionValidationService
from ..models.enums import ConditionOperator
from ..models.validation import SemanticValidationError


logger = logging.getLogger(__name__)

ALWAYS_FALSE_MESSAGE = "The expression is always false."

Conjunction = List[LeafCondition]
Dnf = List[Conjunction]


def _xor_pair(first: Condition, second: Condition) -> ConditionSet:
    return ConditionSet.and_(
        ConditionSet.or_(first, second),
        ConditionSet.and_(first, second, negate=True),
    )


def expand_xor(condition: Condition) -> Condition:
    """Rewrite every XOR set as AND/OR/NOT, pairwise from the left."""
    if not isinstance(condition, ConditionSet):
        return condition

    children = [expand_xor(child) for child in condition.conditions]
    if condition.operator != ConditionOperator.XOR:
        return ConditionSet(condition.operator, tuple(children), condition.negate)

    if len(children) < 2:
        raise InvariantViolationError(message="XOR requires at least two conditions")

    expanded = _xor_pair(children[0], children[1])
    for child in children[2:]:
        expanded = _xor_pair(expanded, child)
    return expanded.negated() if condition.negate else expanded


def propagate_negation(condition: Condition) -> Condition:
    """Push set-level negation down to the leaves using De Morgan's laws."""
    if not isinstance(condition, ConditionSet):
        return condition

    if not condition.negate:
        return ConditionSet(
            condition.operator,
            tuple(propagate_negation(child) for child in condition.conditions),
        )

    if condition.operator == ConditionOperator.AND:
        operator = ConditionOperator.OR
    elif condition.operator == ConditionOperator.OR:
        operator = ConditionOperator.AND
    else:
        raise InvariantViolationError(message="Cannot negate an unexpanded XOR condition set")

    return ConditionSet(
        operator,
        tuple(propagate_negation(child.negated()) for child in condition.conditions),
    )


def _and_dnf(first: Dnf, second: Dnf) -> Dnf:
    return [left + right for left in first for right in second]


def _or_dnf(first: Dnf, second: Dnf) -> Dnf:
    return first + second


def to_dnf(condition: Condition) -> Dnf:
    """
    Flatten a negation-free tree into a list of conjunctions.

    Raises:
        InvariantViolationError: If an XOR set or a negated set remains.
    """
    if not isinstance(condition, ConditionSet):
        return [[condition]]

    if condition.negate:
        raise InvariantViolationError(message="Negated condition set found during DNF conversion")
    if condition.operator == ConditionOperator.AND:
        combine = _and_dnf
    elif condition.operator == ConditionOperator.OR:
        combine = _or_dnf
    else:
        raise InvariantViolationError(message="XOR condition set found during DNF conversion")

    result: Optional[Dnf] = None
    for child in condition.conditions:
        child_dnf = to_dnf(child)
        result = child_dnf if result is None else combine(result, child_dnf)

    if result is None:
        # Empty AND is true, empty OR is false.
        return [[]] if condition.operator == ConditionOperator.AND else []
    return result


def is_contradictory(conjunction: Conjunction) -> bool:
    """Check whether any unordered pair of leaves in a conjunction contradicts."""
    return any(first.contradicts(second) for first, second in combinations(conjunction, 2))


class ConditionValidationService(IConditionValidationService):
    """Detects condition trees that can never be satisfied."""

    def to_dnf(self, condition: Condition) -> Dnf:
        """Run all rewriting passes and return the DNF of ``condition``."""
        return to_dnf(propagate_negation(expand_xor(condition)))

    def validate(
        self, condition: Condition, path: Optional[str] = None
    ) -> List[SemanticValidationError]:
        """
        Validate that a condition tree can be satisfied.

        Args:
            condition: Root of the tree.
            path: Payload path reported with any error.

        Returns:
            A single "always false" error, or an empty list.
        """
        dnf = self.to_dnf(condition)
        if all(is_contradictory(conjunction) for conjunction in dnf):
            logger.debug(f"Condition at {path} is contradictory in all {len(dnf)} conjunctions")
            return [SemanticValidationError(message=ALWAYS_FALSE_MESSAGE, path=path)]
        return []
