"""
Tests for the data models.
"""

import pytest
from pydantic import ValidationError

from oval_runner.models import (
    ContentLevel,
    Criteria,
    Criterion,
    Definition,
    DirectivePolicy,
    ExtendDefinition,
    ResultDirectives,
    Verdict,
)


class TestVerdict:
    """Tests for the verdict enumeration."""

    def test_text_and_label(self):
        assert Verdict.NOT_EVALUATED.text == "not evaluated"
        assert Verdict.NOT_APPLICABLE.label == "NOT APPLICABLE"
        assert Verdict.TRUE.directive_tag == "definition_true"
        assert Verdict.NOT_EVALUATED.directive_tag == "definition_not_evaluated"

    def test_from_text(self):
        assert Verdict.from_text("not_applicable") is Verdict.NOT_APPLICABLE
        assert Verdict.from_text(" TRUE ") is Verdict.TRUE
        with pytest.raises(ValueError):
            Verdict.from_text("maybe")

    def test_negate(self):
        """Only true and false are swapped."""
        assert Verdict.TRUE.negate() is Verdict.FALSE
        assert Verdict.FALSE.negate() is Verdict.TRUE
        assert Verdict.ERROR.negate() is Verdict.ERROR


class TestResultDirectives:
    """Tests for result directives."""

    def test_full(self):
        directives = ResultDirectives.full()

        for verdict in Verdict:
            assert directives.is_reported(verdict)
            assert directives.content(verdict) is ContentLevel.FULL

    def test_rejects_incomplete_coverage(self):
        """Every verdict category must have a policy."""
        with pytest.raises(ValidationError, match="missing result categories"):
            ResultDirectives(policies={Verdict.TRUE: DirectivePolicy()})

    def test_narrowing(self):
        directives = (
            ResultDirectives.full()
            .with_reported([Verdict.NOT_APPLICABLE], False)
            .with_content([Verdict.TRUE], ContentLevel.THIN)
        )

        assert not directives.is_reported(Verdict.NOT_APPLICABLE)
        assert directives.content(Verdict.TRUE) is ContentLevel.THIN
        assert directives.content(Verdict.FALSE) is ContentLevel.FULL

    def test_frozen(self):
        directives = ResultDirectives.full()
        with pytest.raises(ValidationError):
            directives.policies = {}


class TestDefinition:
    """Tests for definition records."""

    def test_references(self):
        """Test and definition references are collected through nested criteria."""
        definition = Definition(
            id="oval:x:def:1",
            criteria=Criteria(children=(
                Criterion(test_ref="oval:x:tst:1"),
                Criteria(children=(
                    Criterion(test_ref="oval:x:tst:2"),
                    ExtendDefinition(definition_ref="oval:x:def:2"),
                )),
            )),
        )

        assert list(definition.test_refs()) == ["oval:x:tst:1", "oval:x:tst:2"]
        assert list(definition.definition_refs()) == ["oval:x:def:2"]

    def test_class_alias(self):
        definition = Definition.model_validate({"id": "oval:x:def:1", "class": "patch"})
        assert definition.definition_class == "patch"
