"""
Entity value comparison.

Compares a collected value with an expected value under an OVAL
operation and datatype, yielding ``true``, ``false`` or ``error``.
"""

from __future__ import annotations

import logging
import re
from itertools import zip_longest
from typing import Callable

from oval_runner.models.verdicts import Verdict

logger = logging.getLogger(__name__)

_ORDERING = {
    "equals": lambda a, b: a == b,
    "not equal": lambda a, b: a != b,
    "greater than": lambda a, b: a > b,
    "less than": lambda a, b: a < b,
    "greater than or equal": lambda a, b: a >= b,
    "less than or equal": lambda a, b: a <= b,
}

_TRUE_TEXT = ("true", "1")
_FALSE_TEXT = ("false", "0")


class ComparisonError(ValueError):
    """A value cannot be compared under the requested datatype or operation."""


def _to_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_TEXT:
        return True
    if text in _FALSE_TEXT:
        return False
    raise ComparisonError(f"Not a boolean: {value!r}")


def _to_int(value: str) -> int:
    try:
        return int(value.strip(), 0) if value.strip().lower().startswith("0x") else int(value.strip())
    except ValueError as e:
        raise ComparisonError(f"Not an integer: {value!r}") from e


def _to_float(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError as e:
        raise ComparisonError(f"Not a float: {value!r}") from e


def _version_parts(value: str) -> list[int | str]:
    return [int(p) if p.isdigit() else p for p in re.split(r"[^0-9A-Za-z]+", value.strip()) if p]


class _Version:
    """Orderable version string (``1.10.2`` > ``1.9``)."""

    def __init__(self, value: str):
        self.parts = _version_parts(value)

    def _cmp(self, other: "_Version") -> int:
        for left, right in zip_longest(self.parts, other.parts, fillvalue=0):
            if left == right:
                continue
            if isinstance(left, int) and isinstance(right, int):
                return -1 if left < right else 1
            return -1 if str(left) < str(right) else 1
        return 0

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Version) and self._cmp(other) == 0

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __lt__(self, other: "_Version") -> bool:
        return self._cmp(other) < 0

    def __gt__(self, other: "_Version") -> bool:
        return self._cmp(other) > 0

    def __le__(self, other: "_Version") -> bool:
        return self._cmp(other) <= 0

    def __ge__(self, other: "_Version") -> bool:
        return self._cmp(other) >= 0


def _evr(value: str) -> tuple[_Version, _Version, _Version]:
    """Split ``epoch:version-release`` into orderable parts."""
    epoch, _, rest = value.strip().rpartition(":")
    version, _, release = rest.partition("-")
    return _Version(epoch or "0"), _Version(version), _Version(release)


_CONVERTERS: dict[str, Callable[[str], object]] = {
    "int": _to_int,
    "float": _to_float,
    "boolean": _to_bool,
    "version": _Version,
    "evr_string": _evr,
    "debian_evr_string": _evr,
}


def _compare_string(actual: str, expected: str, operation: str) -> bool:
    if operation == "equals":
        return actual == expected
    if operation == "not equal":
        return actual != expected
    if operation == "case insensitive equals":
        return actual.lower() == expected.lower()
    if operation == "case insensitive not equal":
        return actual.lower() != expected.lower()
    if operation == "pattern match":
        try:
            return re.search(expected, actual) is not None
        except re.error as e:
            raise ComparisonError(f"Invalid pattern {expected!r}: {e}") from e
    raise ComparisonError(f"Operation {operation!r} is not defined for strings")


def compare_values(actual: str | None, expected: str | None, operation: str = "equals", datatype: str = "string") -> bool:
    """
    Compare two values.

    Raises:
        ComparisonError: The values or the operation do not fit the datatype
    """
    if actual is None or expected is None:
        raise ComparisonError("Cannot compare a missing value")

    if datatype in ("string", "binary", "ipv4_address", "ipv6_address"):
        if datatype == "binary":
            actual, expected = actual.lower(), expected.lower()
        return _compare_string(actual, expected, operation)

    converter = _CONVERTERS.get(datatype)
    if converter is None:
        raise ComparisonError(f"Unsupported datatype: {datatype}")

    if datatype == "int" and operation in ("bitwise and", "bitwise or"):
        left, right = _to_int(actual), _to_int(expected)
        if operation == "bitwise and":
            return (left & right) == right
        return (left | right) == right

    if datatype == "boolean" and operation not in ("equals", "not equal"):
        raise ComparisonError(f"Operation {operation!r} is not defined for booleans")

    comparator = _ORDERING.get(operation)
    if comparator is None:
        raise ComparisonError(f"Operation {operation!r} is not defined for {datatype}")
    return comparator(converter(actual), converter(expected))


def compare(actual: str | None, expected: str | None, operation: str = "equals", datatype: str = "string") -> Verdict:
    """Like ``compare_values`` but folds failures into an ``error`` verdict."""
    try:
        return Verdict.TRUE if compare_values(actual, expected, operation, datatype) else Verdict.FALSE
    except ComparisonError as e:
        logger.debug(f"Comparison error: {e}")
        return Verdict.ERROR
