"""
Definition evaluation against one set of system characteristics.
"""

from __future__ import annotations

import logging
from typing import Iterator

from oval_runner.core.comparison import compare
from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.operators import apply_check, check_existence, combine
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.models.definitions import Criteria, Criterion, Entity, StateDef, TestDef
from oval_runner.models.results import (
    CriteriaResult,
    CriterionResult,
    DefinitionResult,
    ExtendDefinitionResult,
    ResultSystem,
    TestedItem,
    TestResult,
)
from oval_runner.models.syschar import Item
from oval_runner.models.verdicts import ItemStatus, ObjectFlag, Verdict

logger = logging.getLogger(__name__)

_FLAG_VERDICTS = {
    ObjectFlag.ERROR: Verdict.ERROR,
    ObjectFlag.NOT_COLLECTED: Verdict.UNKNOWN,
    ObjectFlag.NOT_APPLICABLE: Verdict.NOT_APPLICABLE,
}

_STATUS_VERDICTS = {
    ItemStatus.DOES_NOT_EXIST: Verdict.FALSE,
    ItemStatus.ERROR: Verdict.ERROR,
    ItemStatus.NOT_COLLECTED: Verdict.UNKNOWN,
}


class SystemEvaluator:
    """
    Evaluates definitions of one Definition Model against one
    System-Characteristics Model, memoizing definition and test results
    in a ``ResultSystem``.
    """

    def __init__(self, definition_model: DefinitionModel, syschar_model: SystemCharacteristicsModel):
        self.definition_model = definition_model
        self.syschar_model = syschar_model
        self.system = ResultSystem(sysinfo=syschar_model.sysinfo)
        self._in_progress: set[str] = set()

    def evaluate_all(self) -> Iterator[DefinitionResult]:
        """Evaluate every definition in document order."""
        for definition in self.definition_model.iter_definitions():
            yield self.evaluate_definition(definition.id)

    def evaluate_definition(self, definition_id: str) -> DefinitionResult:
        cached = self.system.definitions.get(definition_id)
        if cached is not None:
            return cached

        definition = self.definition_model.get_definition(definition_id)
        if definition is None:
            raise KeyError(definition_id)

        self._in_progress.add(definition_id)
        try:
            if definition.criteria is None:
                criteria = None
                verdict = Verdict.NOT_EVALUATED
            else:
                criteria = self._evaluate_criteria(definition.criteria)
                verdict = criteria.result
        finally:
            self._in_progress.discard(definition_id)

        result = DefinitionResult(
            definition_id=definition.id,
            version=definition.version,
            result=verdict,
            criteria=criteria,
        )
        self.system.definitions[definition_id] = result
        logger.debug(f"Definition {definition_id}: {verdict.text}")
        return result

    def _evaluate_criteria(self, criteria: Criteria) -> CriteriaResult:
        children = []
        for child in criteria.children:
            if isinstance(child, Criteria):
                children.append(self._evaluate_criteria(child))
            elif isinstance(child, Criterion):
                verdict = self.evaluate_test(child.test_ref).result
                children.append(CriterionResult(
                    test_ref=child.test_ref,
                    negate=child.negate,
                    result=verdict.negate() if child.negate else verdict,
                ))
            else:
                verdict = self._evaluate_extended(child.definition_ref)
                children.append(ExtendDefinitionResult(
                    definition_ref=child.definition_ref,
                    negate=child.negate,
                    result=verdict.negate() if child.negate else verdict,
                ))

        verdict = combine(criteria.operator, (c.result for c in children))
        return CriteriaResult(
            operator=criteria.operator,
            negate=criteria.negate,
            result=verdict.negate() if criteria.negate else verdict,
            children=tuple(children),
        )

    def _evaluate_extended(self, definition_id: str) -> Verdict:
        if definition_id in self._in_progress:
            logger.warning(f"Circular extend_definition reference to {definition_id}")
            return Verdict.ERROR
        if self.definition_model.get_definition(definition_id) is None:
            logger.warning(f"extend_definition references unknown definition {definition_id}")
            return Verdict.ERROR
        return self.evaluate_definition(definition_id).result

    def evaluate_test(self, test_id: str) -> TestResult:
        cached = self.system.tests.get(test_id)
        if cached is not None:
            return cached

        test = self.definition_model.tests.get(test_id)
        if test is None:
            logger.warning(f"criterion references unknown test {test_id}")
            return TestResult(test_id=test_id, result=Verdict.ERROR, messages=("Test is not defined",))

        result = self._evaluate_test(test)
        self.system.tests[test_id] = result
        return result

    def _evaluate_test(self, test: TestDef) -> TestResult:
        def done(verdict: Verdict, tested: tuple[TestedItem, ...] = (), messages: tuple[str, ...] = ()) -> TestResult:
            return TestResult(
                test_id=test.id,
                version=test.version,
                check=test.check,
                check_existence=test.check_existence,
                state_operator=test.state_operator,
                result=verdict,
                tested_items=tested,
                messages=messages,
            )

        if test.object_ref is None:
            return done(Verdict.UNKNOWN, messages=("Test has no object",))

        collected = self.syschar_model.get_collected_object(test.object_ref)
        if collected is None:
            return done(Verdict.UNKNOWN, messages=(f"Object {test.object_ref} was not collected",))

        flag_verdict = _FLAG_VERDICTS.get(collected.flag)
        if flag_verdict is not None:
            return done(flag_verdict, messages=tuple(collected.messages))

        items = self.syschar_model.get_items(collected)
        existence = check_existence(test.check_existence, (item.status for item in items))
        if not test.state_refs or existence is not Verdict.TRUE:
            return done(existence, tuple(TestedItem(item_id=item.id, result=Verdict.NOT_EVALUATED) for item in items))

        states = [self.definition_model.states.get(ref) for ref in test.state_refs]
        tested = []
        for item in items:
            if item.status is ItemStatus.EXISTS:
                verdict = combine(test.state_operator, (self._evaluate_state(item, state) for state in states))
            elif item.status is ItemStatus.DOES_NOT_EXIST:
                continue
            else:
                verdict = _STATUS_VERDICTS[item.status]
            tested.append(TestedItem(item_id=item.id, result=verdict))

        if not tested:
            return done(existence)
        return done(apply_check(test.check, (t.result for t in tested)), tuple(tested))

    def _evaluate_state(self, item: Item, state: StateDef | None) -> Verdict:
        if state is None:
            return Verdict.ERROR
        return combine(state.operator, (self._evaluate_entity(item, entity) for entity in state.entities))

    @staticmethod
    def _evaluate_entity(item: Item, entity: Entity) -> Verdict:
        values = item.values(entity.name)
        if not values:
            return Verdict.ERROR

        verdicts = []
        for value in values:
            status_verdict = _STATUS_VERDICTS.get(value.status)
            if status_verdict is not None:
                verdicts.append(status_verdict)
            else:
                verdicts.append(compare(value.value, entity.value, entity.operation, entity.datatype))
        try:
            return apply_check(entity.entity_check, verdicts)
        except ValueError:
            logger.warning(f"Unsupported entity_check {entity.entity_check!r} on {entity.name}")
            return Verdict.ERROR
