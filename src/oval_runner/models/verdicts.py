"""
Verdict and operator enumerations shared by every OVAL model.

The verdict set is closed: every evaluated definition, test, criteria
node or item ends up in exactly one of the six categories below.
"""

from __future__ import annotations

from enum import Enum


class Verdict(str, Enum):
    """Result of evaluating a definition, criteria node, test or item."""

    TRUE = "true"
    FALSE = "false"
    ERROR = "error"
    UNKNOWN = "unknown"
    NOT_EVALUATED = "not evaluated"
    NOT_APPLICABLE = "not applicable"

    @property
    def text(self) -> str:
        """Text used on the console and in result documents."""
        return self.value

    @property
    def label(self) -> str:
        """Upper-case label used in the aggregated report."""
        return self.value.upper()

    @property
    def directive_tag(self) -> str:
        """Name of the matching element in a results ``directives`` block."""
        return "definition_" + self.value.replace(" ", "_")

    @classmethod
    def from_text(cls, text: str) -> "Verdict":
        """Parse a verdict from document text (tolerates ``_`` separators)."""
        normalized = text.strip().lower().replace("_", " ")
        for verdict in cls:
            if verdict.value == normalized:
                return verdict
        raise ValueError(f"Unknown OVAL result: {text!r}")

    def negate(self) -> "Verdict":
        """Swap true and false; every other verdict is unchanged."""
        if self is Verdict.TRUE:
            return Verdict.FALSE
        if self is Verdict.FALSE:
            return Verdict.TRUE
        return self


class Operator(str, Enum):
    """Logical operator combining child verdicts."""

    AND = "AND"
    OR = "OR"
    ONE = "ONE"
    XOR = "XOR"


class CheckOperator(str, Enum):
    """How many items must satisfy the states of a test."""

    ALL = "all"
    AT_LEAST_ONE = "at least one"
    NONE_SATISFY = "none satisfy"
    ONLY_ONE = "only one"
    # Deprecated alias of NONE_SATISFY kept by older content
    NONE_EXIST = "none exist"


class ExistenceCheck(str, Enum):
    """How many collected items must exist for a test."""

    ALL_EXIST = "all_exist"
    ANY_EXIST = "any_exist"
    AT_LEAST_ONE_EXISTS = "at_least_one_exists"
    NONE_EXIST = "none_exist"
    ONLY_ONE_EXISTS = "only_one_exists"


class ObjectFlag(str, Enum):
    """Collection outcome recorded for an object in system characteristics."""

    ERROR = "error"
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    DOES_NOT_EXIST = "does not exist"
    NOT_COLLECTED = "not collected"
    NOT_APPLICABLE = "not applicable"


class ItemStatus(str, Enum):
    """Status of a collected item or item entity."""

    EXISTS = "exists"
    DOES_NOT_EXIST = "does not exist"
    ERROR = "error"
    NOT_COLLECTED = "not collected"


class ContentLevel(str, Enum):
    """Detail level of an exported definition result."""

    THIN = "thin"
    FULL = "full"
