"""
Tests for the OVAL result algebra.
"""

import pytest

from oval_runner.core.operators import apply_check, check_existence, combine
from oval_runner.models.verdicts import CheckOperator, ExistenceCheck, ItemStatus, Operator, Verdict

T, F, E, U, NE, NA = (
    Verdict.TRUE,
    Verdict.FALSE,
    Verdict.ERROR,
    Verdict.UNKNOWN,
    Verdict.NOT_EVALUATED,
    Verdict.NOT_APPLICABLE,
)


class TestCombine:
    """Tests for logical operators."""

    def test_and(self):
        """AND is false as soon as one child is false."""
        assert combine(Operator.AND, [T, T]) is T
        assert combine(Operator.AND, [T, F]) is F
        assert combine(Operator.AND, [F, E]) is F
        assert combine(Operator.AND, [T, E]) is E
        assert combine(Operator.AND, [T, U]) is U

    def test_or(self):
        """OR is true as soon as one child is true."""
        assert combine(Operator.OR, [F, T]) is T
        assert combine(Operator.OR, [F, F]) is F
        assert combine(Operator.OR, [E, T]) is T
        assert combine(Operator.OR, [F, U]) is U

    def test_one(self):
        """ONE requires exactly one true child."""
        assert combine(Operator.ONE, [T, F, F]) is T
        assert combine(Operator.ONE, [T, T, E]) is F
        assert combine(Operator.ONE, [F, F]) is F
        assert combine(Operator.ONE, [T, E]) is E

    def test_xor(self):
        """XOR is true for an odd number of true children."""
        assert combine(Operator.XOR, [T, F]) is T
        assert combine(Operator.XOR, [T, T]) is F
        assert combine(Operator.XOR, [T, T, T]) is T
        assert combine(Operator.XOR, [T, NE]) is NE

    def test_not_applicable_ignored(self):
        """Not applicable children do not influence the result."""
        assert combine(Operator.AND, [T, NA]) is T
        assert combine(Operator.OR, [F, NA]) is F
        assert combine(Operator.AND, [NA, NA]) is NA

    def test_empty_is_unknown(self):
        """No children at all cannot be decided."""
        assert combine(Operator.AND, []) is U


class TestApplyCheck:
    """Tests for check operators."""

    def test_all(self):
        assert apply_check(CheckOperator.ALL, [T, T]) is T
        assert apply_check(CheckOperator.ALL, [T, F]) is F

    def test_at_least_one(self):
        assert apply_check(CheckOperator.AT_LEAST_ONE, [F, T]) is T

    def test_only_one(self):
        assert apply_check(CheckOperator.ONLY_ONE, [T, T]) is F
        assert apply_check("only one", [T, F]) is T

    def test_none_satisfy(self):
        """None satisfy negates OR, the deprecated spelling behaves the same."""
        assert apply_check(CheckOperator.NONE_SATISFY, [F, F]) is T
        assert apply_check(CheckOperator.NONE_SATISFY, [F, T]) is F
        assert apply_check(CheckOperator.NONE_EXIST, [F, F]) is T

    def test_invalid_check(self):
        with pytest.raises(ValueError):
            apply_check("most", [T])


class TestCheckExistence:
    """Tests for existence checks."""

    EXISTS = ItemStatus.EXISTS
    MISSING = ItemStatus.DOES_NOT_EXIST
    ERROR = ItemStatus.ERROR

    def test_at_least_one_exists(self):
        assert check_existence(ExistenceCheck.AT_LEAST_ONE_EXISTS, [self.EXISTS]) is T
        assert check_existence(ExistenceCheck.AT_LEAST_ONE_EXISTS, []) is F
        assert check_existence(ExistenceCheck.AT_LEAST_ONE_EXISTS, [self.ERROR]) is E

    def test_all_exist(self):
        assert check_existence(ExistenceCheck.ALL_EXIST, [self.EXISTS, self.EXISTS]) is T
        assert check_existence(ExistenceCheck.ALL_EXIST, [self.EXISTS, self.MISSING]) is F
        assert check_existence(ExistenceCheck.ALL_EXIST, []) is F

    def test_none_exist(self):
        assert check_existence(ExistenceCheck.NONE_EXIST, []) is T
        assert check_existence(ExistenceCheck.NONE_EXIST, [self.EXISTS]) is F

    def test_only_one_exists(self):
        assert check_existence(ExistenceCheck.ONLY_ONE_EXISTS, [self.EXISTS]) is T
        assert check_existence(ExistenceCheck.ONLY_ONE_EXISTS, [self.EXISTS, self.EXISTS]) is F

    def test_any_exist(self):
        assert check_existence(ExistenceCheck.ANY_EXIST, []) is T
        assert check_existence(ExistenceCheck.ANY_EXIST, [self.ERROR]) is E
