"""
Data models for OVAL results.

Covers the evaluated criteria trees, per-test outcomes, the per-system
result sets and the directives that decide what gets exported.
"""

from __future__ import annotations

from typing import Iterable, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from oval_runner.models.definitions import DefinitionsDocument, Generator
from oval_runner.models.syschar import SystemInfo
from oval_runner.models.verdicts import (
    CheckOperator,
    ContentLevel,
    ExistenceCheck,
    Operator,
    Verdict,
)


class CriterionResult(BaseModel):
    """Evaluated ``criterion`` leaf."""

    model_config = ConfigDict(frozen=True)

    test_ref: str
    negate: bool = False
    result: Verdict


class ExtendDefinitionResult(BaseModel):
    """Evaluated ``extend_definition`` leaf."""

    model_config = ConfigDict(frozen=True)

    definition_ref: str
    negate: bool = False
    result: Verdict


class CriteriaResult(BaseModel):
    """Evaluated criteria node with its evaluated children."""

    model_config = ConfigDict(frozen=True)

    operator: Operator = Operator.AND
    negate: bool = False
    result: Verdict
    children: tuple[Union[CriteriaResult, CriterionResult, ExtendDefinitionResult], ...] = ()


CriteriaResult.model_rebuild()


class DefinitionResult(BaseModel):
    """Verdict of one definition on one system."""

    model_config = ConfigDict(frozen=True)

    definition_id: str
    version: str = "1"
    result: Verdict
    criteria: CriteriaResult | None = None


class TestedItem(BaseModel):
    """Verdict of one collected item against the states of a test."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    result: Verdict


class TestResult(BaseModel):
    """Verdict of one test on one system."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    test_id: str
    version: str = "1"
    check: CheckOperator = CheckOperator.ALL
    check_existence: ExistenceCheck = ExistenceCheck.AT_LEAST_ONE_EXISTS
    state_operator: Operator = Operator.AND
    result: Verdict
    tested_items: tuple[TestedItem, ...] = ()
    messages: tuple[str, ...] = ()


class ResultSystem(BaseModel):
    """All results computed against one system characteristics model."""

    sysinfo: SystemInfo | None = None
    definitions: dict[str, DefinitionResult] = Field(default_factory=dict)
    tests: dict[str, TestResult] = Field(default_factory=dict)

    def verdicts(self) -> dict[str, Verdict]:
        """Map definition id to verdict, in evaluation order."""
        return {
            definition_id: result.result
            for definition_id, result in self.definitions.items()
        }


class DirectivePolicy(BaseModel):
    """Export policy for one verdict category."""

    model_config = ConfigDict(frozen=True)

    reported: bool = True
    content: ContentLevel = ContentLevel.FULL


class ResultDirectives(BaseModel):
    """
    Which verdict categories are exported, and at what detail.

    The mapping always covers the full closed set of verdicts; a
    directives object missing a category is rejected at construction.

    Example:
        ```python
        directives = ResultDirectives.full().with_content(
            [Verdict.NOT_APPLICABLE], ContentLevel.THIN
        )
        ```
    """

    model_config = ConfigDict(frozen=True)

    policies: dict[Verdict, DirectivePolicy]

    @model_validator(mode="after")
    def _check_coverage(self) -> "ResultDirectives":
        missing = [verdict.text for verdict in Verdict if verdict not in self.policies]
        if missing:
            raise ValueError(f"Directives missing result categories: {', '.join(missing)}")
        return self

    @classmethod
    def full(cls) -> "ResultDirectives":
        """Report every category with full content."""
        return cls(policies={verdict: DirectivePolicy() for verdict in Verdict})

    def with_reported(self, verdicts: Iterable[Verdict], reported: bool) -> "ResultDirectives":
        """Return a copy with ``reported`` changed for the given categories."""
        selected = set(verdicts)
        return ResultDirectives(policies={
            verdict: policy.model_copy(update={"reported": reported}) if verdict in selected else policy
            for verdict, policy in self.policies.items()
        })

    def with_content(self, verdicts: Iterable[Verdict], content: ContentLevel) -> "ResultDirectives":
        """Return a copy with the content level changed for the given categories."""
        selected = set(verdicts)
        return ResultDirectives(policies={
            verdict: policy.model_copy(update={"content": content}) if verdict in selected else policy
            for verdict, policy in self.policies.items()
        })

    def is_reported(self, verdict: Verdict) -> bool:
        return self.policies[verdict].reported

    def content(self, verdict: Verdict) -> ContentLevel:
        return self.policies[verdict].content


class ResultsDocument(BaseModel):
    """Everything read back from an ``oval_results`` document."""

    generator: Generator = Field(default_factory=Generator)
    directives: ResultDirectives = Field(default_factory=ResultDirectives.full)
    definitions: DefinitionsDocument | None = None
    systems: list[ResultSystem] = Field(default_factory=list)

    def definition_title(self, definition_id: str) -> str | None:
        """Title of a definition, when the definitions were embedded."""
        if self.definitions is None:
            return None
        for definition in self.definitions.definitions:
            if definition.id == definition_id:
                return definition.title
        return None
