"""
OVAL result algebra.

Truth tables for logical operators, check operators and existence checks
over the six-valued verdict set.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from oval_runner.models.verdicts import CheckOperator, ExistenceCheck, ItemStatus, Operator, Verdict


def _undecided(counts: Counter) -> Verdict:
    """Verdict when neither true nor false settles the outcome."""
    if counts[Verdict.ERROR]:
        return Verdict.ERROR
    if counts[Verdict.UNKNOWN]:
        return Verdict.UNKNOWN
    return Verdict.NOT_EVALUATED


def combine(operator: Operator, verdicts: Iterable[Verdict]) -> Verdict:
    """
    Combine child verdicts with a logical operator.

    ``not applicable`` children are ignored unless every child is not
    applicable. No children at all yields ``unknown``.
    """
    verdicts = list(verdicts)
    if not verdicts:
        return Verdict.UNKNOWN

    counts = Counter(verdicts)
    if counts[Verdict.NOT_APPLICABLE] == len(verdicts):
        return Verdict.NOT_APPLICABLE

    trues = counts[Verdict.TRUE]
    falses = counts[Verdict.FALSE]
    undecided = counts[Verdict.ERROR] + counts[Verdict.UNKNOWN] + counts[Verdict.NOT_EVALUATED]

    if operator is Operator.AND:
        if falses:
            return Verdict.FALSE
        if not undecided:
            return Verdict.TRUE
        return _undecided(counts)

    if operator is Operator.OR:
        if trues:
            return Verdict.TRUE
        if not undecided:
            return Verdict.FALSE
        return _undecided(counts)

    if operator is Operator.ONE:
        if trues >= 2:
            return Verdict.FALSE
        if not undecided:
            return Verdict.TRUE if trues == 1 else Verdict.FALSE
        return _undecided(counts)

    if operator is Operator.XOR:
        if not undecided:
            return Verdict.TRUE if trues % 2 == 1 else Verdict.FALSE
        return _undecided(counts)

    raise ValueError(f"Unsupported operator: {operator}")


def apply_check(check: CheckOperator | str, verdicts: Iterable[Verdict]) -> Verdict:
    """Combine item (or value) verdicts with a check operator."""
    check = CheckOperator(check)
    if check is CheckOperator.ALL:
        return combine(Operator.AND, verdicts)
    if check is CheckOperator.AT_LEAST_ONE:
        return combine(Operator.OR, verdicts)
    if check is CheckOperator.ONLY_ONE:
        return combine(Operator.ONE, verdicts)
    # none satisfy / none exist
    return combine(Operator.OR, verdicts).negate()


def check_existence(check: ExistenceCheck, statuses: Iterable[ItemStatus]) -> Verdict:
    """Evaluate an existence check over the statuses of collected items."""
    counts = Counter(statuses)
    exists = counts[ItemStatus.EXISTS]
    missing = counts[ItemStatus.DOES_NOT_EXIST]
    errors = counts[ItemStatus.ERROR]
    not_collected = counts[ItemStatus.NOT_COLLECTED]

    if check is ExistenceCheck.ALL_EXIST:
        if missing:
            return Verdict.FALSE
        if errors:
            return Verdict.ERROR
        if not_collected:
            return Verdict.UNKNOWN
        return Verdict.TRUE if exists else Verdict.FALSE

    if check is ExistenceCheck.ANY_EXIST:
        if errors and not exists:
            return Verdict.ERROR
        return Verdict.TRUE

    if check is ExistenceCheck.AT_LEAST_ONE_EXISTS:
        if exists:
            return Verdict.TRUE
        if errors:
            return Verdict.ERROR
        if not_collected:
            return Verdict.UNKNOWN
        return Verdict.FALSE

    if check is ExistenceCheck.NONE_EXIST:
        if exists:
            return Verdict.FALSE
        if errors:
            return Verdict.ERROR
        if not_collected:
            return Verdict.UNKNOWN
        return Verdict.TRUE

    if check is ExistenceCheck.ONLY_ONE_EXISTS:
        if exists > 1:
            return Verdict.FALSE
        if errors:
            return Verdict.ERROR
        if not_collected:
            return Verdict.UNKNOWN
        return Verdict.TRUE if exists == 1 else Verdict.FALSE

    raise ValueError(f"Unsupported existence check: {check}")
