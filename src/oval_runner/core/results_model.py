"""
Results Model.

Associates one Definition Model with a list of System-Characteristics
Models and holds the verdicts computed for each of them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO
from xml.etree.ElementTree import ParseError

from pydantic import ValidationError

from oval_runner.core import xmlio
from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.evaluator import SystemEvaluator
from oval_runner.core.resources import ManagedResource
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.errors import DocumentExportError, DocumentImportError, EvaluationError
from oval_runner.models.results import ResultDirectives, ResultsDocument
from oval_runner.models.verdicts import Verdict

logger = logging.getLogger(__name__)


class ResultsModel(ManagedResource):
    """
    Verdicts of one Definition Model over one or more systems.

    Example:
        ```python
        results = ResultsModel(definition_model, [syschar_model])
        results.evaluate()
        results.export(ResultDirectives.full(), "results.xml")
        ```
    """

    def __init__(
        self,
        definition_model: DefinitionModel,
        syschar_models: list[SystemCharacteristicsModel],
    ):
        super().__init__()
        if not syschar_models:
            raise ValueError("A results model needs at least one system characteristics model")
        for syschar in syschar_models:
            if syschar.definition_model is not definition_model:
                raise ValueError("System characteristics are bound to a different definition model")

        self.definition_model = definition_model
        self.syschar_models = list(syschar_models)
        self._evaluators = [SystemEvaluator(definition_model, syschar) for syschar in self.syschar_models]

    def __repr__(self) -> str:
        return f"ResultsModel(definitions={self.definition_model.source!r}, systems={len(self.syschar_models)})"

    def _release(self) -> None:
        self._evaluators.clear()

    @property
    def primary(self) -> SystemEvaluator:
        """Evaluator of the first (in practice the only) system."""
        self._ensure_open()
        return self._evaluators[0]

    def evaluate(self) -> None:
        """Evaluate every definition against every system."""
        self._ensure_open()
        for evaluator in self._evaluators:
            evaluator.system.sysinfo = evaluator.syschar_model.sysinfo
            for result in evaluator.evaluate_all():
                logger.debug(f"Definition {result.definition_id}: {result.result.text}")

    def evaluate_definition(self, definition_id: str) -> Verdict:
        """
        Evaluate a single definition against the primary system.

        Raises:
            EvaluationError: The definition does not exist
        """
        evaluator = self.primary
        if self.definition_model.get_definition(definition_id) is None:
            raise EvaluationError(f"Definition {definition_id} does not exist")
        evaluator.system.sysinfo = evaluator.syschar_model.sysinfo
        return evaluator.evaluate_definition(definition_id).result

    def verdicts(self) -> dict[str, Verdict]:
        """Verdicts of the primary system, by definition id."""
        return self.primary.system.verdicts()

    def export(
        self,
        directives: ResultDirectives,
        destination: str | Path | IO[str],
        schema_version: str | None = None,
    ) -> None:
        """
        Write an OVAL results document.

        Args:
            directives: Which verdict categories to report and at what detail
            destination: File path, ``"-"`` for standard output, or a text stream
            schema_version: Schema version for the generator blocks; defaults
                to the version the definitions declare
        """
        self._ensure_open()
        schema_version = schema_version or self.definition_model.generator.schema_version
        systems = [(e.system, e.syschar_model.to_element(schema_version)) for e in self._evaluators]
        root = xmlio.build_results(self.definition_model.document, systems, directives, schema_version)
        try:
            xmlio.write_document(root, destination)
        except OSError as e:
            raise DocumentExportError(f"Failed to export results to {destination}", str(e)) from e
        logger.info(f"Results written to {destination}")


def load_results(path: str | Path) -> ResultsDocument:
    """
    Read an OVAL results document back.

    Raises:
        DocumentImportError: The document cannot be read or is not OVAL results
    """
    try:
        return xmlio.parse_results(xmlio.read_document(path))
    except (OSError, ParseError, ValueError, ValidationError) as e:
        raise DocumentImportError(path, str(e)) from e
