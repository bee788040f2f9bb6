"""
Evaluation session.

Binds one Definition Model to the probing and evaluation machinery for a
single run: probes the local system on demand and evaluates definitions
one at a time or as a batch.
"""

from __future__ import annotations

import logging
from typing import Iterator

from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.resources import ManagedResource
from oval_runner.core.results_model import ResultsModel
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.errors import EvaluationError, ProbeError, SessionError
from oval_runner.models.verdicts import Verdict
from oval_runner.probes.engine import BaseProbeEngine
from oval_runner.probes.session import ProbeSession

logger = logging.getLogger(__name__)


class EvaluationSession(ManagedResource):
    """
    One evaluation run over one Definition Model.

    Opening the session queries system info; objects are probed lazily,
    the first time a definition that needs them is evaluated.

    Example:
        ```python
        with EvaluationSession(definition_model, "defs.xml", engine) as session:
            for definition_id, verdict in session.eval_system():
                print(definition_id, verdict.text)
            results = session.get_results_model()
        ```
    """

    def __init__(self, definition_model: DefinitionModel, name: str, engine: BaseProbeEngine):
        """
        Open the session.

        Raises:
            SessionError: System info could not be queried
        """
        super().__init__()
        self.definition_model = definition_model
        self.name = name
        self.engine = engine
        self._syschar: SystemCharacteristicsModel | None = None
        self._probe: ProbeSession | None = None
        self._results: ResultsModel | None = None
        try:
            self._open()
        except SessionError:
            self._closed = True
            raise

    def __repr__(self) -> str:
        return f"EvaluationSession(name={self.name!r})"

    def _open(self) -> None:
        syschar = SystemCharacteristicsModel(self.definition_model)
        probe = ProbeSession(syschar, self.engine)
        try:
            syschar.set_sysinfo(probe.query_sysinfo())
        except ProbeError as e:
            probe.close()
            syschar.close()
            raise SessionError("Failed to query system info", e.description or e.message) from e

        self._syschar = syschar
        self._probe = probe
        self._results = ResultsModel(self.definition_model, [syschar])
        logger.info(f"Opened evaluation session {self.name}")

    def _release(self) -> None:
        for resource in (self._results, self._probe, self._syschar):
            if resource is not None:
                resource.close()
        self._results = self._probe = self._syschar = None

    @property
    def syschar_model(self) -> SystemCharacteristicsModel:
        self._ensure_open()
        return self._syschar

    def eval_definition(self, definition_id: str) -> Verdict:
        """
        Probe what one definition needs and evaluate it.

        Raises:
            EvaluationError: Unknown definition, or probing failed
        """
        self._ensure_open()
        if self.definition_model.get_definition(definition_id) is None:
            raise EvaluationError(f"Definition {definition_id} does not exist")
        try:
            self._probe.query_definition(definition_id)
        except ProbeError as e:
            raise EvaluationError(f"Failed to probe objects of {definition_id}", e.description or e.message) from e
        return self._results.evaluate_definition(definition_id)

    def eval_system(self) -> Iterator[tuple[str, Verdict]]:
        """
        Evaluate every definition, lazily.

        Yields ``(definition id, verdict)`` pairs in document order. The
        stream is finite and cannot be restarted.
        """
        self._ensure_open()
        for definition in self.definition_model.iter_definitions():
            yield definition.id, self.eval_definition(definition.id)

    def get_results_model(self) -> ResultsModel:
        self._ensure_open()
        return self._results

    def reset(self) -> None:
        """
        Drop collected data and results so the definitions can be evaluated again.

        Raises:
            SessionError: System info could not be queried again
        """
        self._ensure_open()
        self._release()
        self._open()
