"""Unit tests for condition satisfiability checks."""

from itertools import product

import pytest

from dtro_core.conditions.conditions import (
    ConditionSet,
    PermitCondition,
    RoadCondition,
    VehicleCondition,
)
from dtro_core.conditions.parser import parse_conditions
from dtro_core.conditions.value_rules import EqualityRule, LessThanRule, MoreThanRule
from dtro_core.exceptions import InvariantViolationError
from dtro_core.models.enums import ConditionOperator
from dtro_core.validation.condition_validation import (
    ALWAYS_FALSE_MESSAGE,
    ConditionValidationService,
    expand_xor,
    propagate_negation,
    to_dnf,
)


A = RoadCondition(road_type=EqualityRule("motorway"))
B = VehicleCondition(vehicle_type=EqualityRule("bus"))
C = PermitCondition(type=EqualityRule("residents"))


def truth_from(values):
    """Truth function assigning a boolean to each of A, B and C."""
    table = dict(zip((A, B, C), values))
    return lambda leaf: table[leaf]


def evaluate_dnf(dnf, truth):
    return any(all(leaf.evaluate(truth) for leaf in conjunction) for conjunction in dnf)


@pytest.fixture
def service():
    return ConditionValidationService()


class TestXorExpansion:
    """Tests for rewriting XOR sets."""

    def test_binary_xor_truth_table(self):
        """XOR(A, B) agrees with (A or B) and not (A and B)."""
        expanded = expand_xor(ConditionSet.xor(A, B))
        for a, b in product([True, False], repeat=2):
            truth = truth_from((a, b, False))
            assert expanded.evaluate(truth) == ((a or b) and not (a and b))

    def test_ternary_xor_is_parity(self):
        """XOR(A, B, C) expands left to right and keeps parity semantics."""
        condition = ConditionSet.xor(A, B, C)
        expanded = expand_xor(condition)
        for values in product([True, False], repeat=3):
            truth = truth_from(values)
            assert expanded.evaluate(truth) == (sum(values) % 2 == 1)
            assert expanded.evaluate(truth) == condition.evaluate(truth)

    def test_negated_xor_keeps_its_negation(self):
        """NOT XOR(A, B) expands to an equivalent tree."""
        condition = ConditionSet.xor(A, B, negate=True)
        expanded = expand_xor(condition)
        for values in product([True, False], repeat=2):
            truth = truth_from(values + (False,))
            assert expanded.evaluate(truth) == condition.evaluate(truth)

    def test_expansion_leaves_no_xor(self):
        """No XOR set remains after expansion."""
        def operators(condition):
            if not isinstance(condition, ConditionSet):
                return set()
            found = {condition.operator}
            for child in condition.conditions:
                found |= operators(child)
            return found

        nested = ConditionSet.and_(A, ConditionSet.xor(B, C))
        assert ConditionOperator.XOR not in operators(expand_xor(nested))


class TestNormalisation:
    """Tests for negation push-down and DNF flattening."""

    def test_negation_reaches_the_leaves(self):
        """NOT(A and B) becomes (NOT A) or (NOT B)."""
        result = propagate_negation(ConditionSet.and_(A, B, negate=True))
        assert result == ConditionSet.or_(A.negated(), B.negated())

    def test_dnf_preserves_meaning(self):
        """The DNF of a mixed tree evaluates like the tree itself."""
        condition = ConditionSet.or_(
            ConditionSet.and_(A, ConditionSet.xor(B, C)),
            ConditionSet.and_(A, B, negate=True),
        )
        dnf = ConditionValidationService().to_dnf(condition)
        for values in product([True, False], repeat=3):
            truth = truth_from(values)
            assert evaluate_dnf(dnf, truth) == condition.evaluate(truth)

    def test_and_is_cross_product(self):
        """(A or B) and C gives two conjunctions."""
        dnf = to_dnf(ConditionSet.and_(ConditionSet.or_(A, B), C))
        assert dnf == [[A, C], [B, C]]

    def test_empty_sets(self):
        """An empty AND is one empty conjunction and an empty OR is none."""
        assert to_dnf(ConditionSet.and_()) == [[]]
        assert to_dnf(ConditionSet.or_()) == []

    def test_unexpanded_xor_is_an_invariant_violation(self):
        """Flattening an XOR set directly is an internal error."""
        with pytest.raises(InvariantViolationError):
            to_dnf(ConditionSet.xor(A, B))

    def test_negated_set_is_an_invariant_violation(self):
        """Flattening a set with a pending negation is an internal error."""
        with pytest.raises(InvariantViolationError):
            to_dnf(ConditionSet.and_(A, B, negate=True))


class TestConditionValidationService:
    """Tests for the always-false check."""

    def test_a_and_not_a(self, service):
        """A and NOT A yields exactly one error."""
        errors = service.validate(ConditionSet.and_(A, A.negated()), path="conditions")
        assert len(errors) == 1
        assert errors[0].message == ALWAYS_FALSE_MESSAGE
        assert errors[0].path == "conditions"

    def test_not_a_and_a(self, service):
        """The order of the contradicting leaves does not matter."""
        assert len(service.validate(ConditionSet.and_(A.negated(), A))) == 1

    def test_a_or_not_a(self, service):
        """A or NOT A is satisfiable."""
        assert service.validate(ConditionSet.or_(A, A.negated())) == []

    def test_xor_of_a_with_itself(self, service):
        """XOR(A, A) can never hold."""
        assert len(service.validate(ConditionSet.xor(A, A))) == 1

    def test_xor_of_independent_conditions(self, service):
        """XOR(A, B) over different subjects is satisfiable."""
        assert service.validate(ConditionSet.xor(A, B)) == []

    def test_disjoint_ranges(self, service):
        """Height below 3 and above 5 is always false."""
        low = VehicleCondition(height=LessThanRule(3.0))
        high = VehicleCondition(height=MoreThanRule(5.0))
        assert len(service.validate(ConditionSet.and_(low, high))) == 1

    @pytest.mark.parametrize("negated_first", [True, False])
    def test_negated_type_list_with_overlapping_list(self, service, negated_first):
        """NOT(bus or taxi) with (bus or car) is satisfied by a car."""
        items = [
            {"vehicleCharacteristics": {"vehicleType": ["bus", "taxi"]}, "negate": True},
            {"vehicleCharacteristics": {"vehicleType": ["bus", "car"]}},
        ]
        if not negated_first:
            items.reverse()
        assert service.validate(parse_conditions(items)) == []

    @pytest.mark.parametrize("negated_first", [True, False])
    def test_negated_type_list_with_same_list(self, service, negated_first):
        """NOT(bus or taxi) with (bus or taxi) is always false."""
        items = [
            {"vehicleCharacteristics": {"vehicleType": ["bus", "taxi"]}, "negate": True},
            {"vehicleCharacteristics": {"vehicleType": ["bus", "taxi"]}},
        ]
        if not negated_first:
            items.reverse()
        errors = service.validate(parse_conditions(items))
        assert [error.message for error in errors] == [ALWAYS_FALSE_MESSAGE]

    def test_one_satisfiable_branch_is_enough(self, service):
        """A contradiction in only some disjuncts is not an error."""
        condition = ConditionSet.or_(ConditionSet.and_(A, A.negated()), B)
        assert service.validate(condition) == []
