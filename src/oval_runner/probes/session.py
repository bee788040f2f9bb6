"""
Probe session.

Drives a probe engine to populate one System-Characteristics Model with
sysinfo and collected objects.
"""

from __future__ import annotations

import logging

from oval_runner.core.resources import ManagedResource
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.errors import ProbeError, ProbeSessionError
from oval_runner.models.syschar import CollectedObject, SystemInfo
from oval_runner.probes.engine import BaseProbeEngine

logger = logging.getLogger(__name__)


class ProbeSession(ManagedResource):
    """
    Stateful coordinator between a probe engine and a characteristics model.

    A session that saw a failed query is unusable: every further query
    raises ``ProbeSessionError`` and the caller is expected to discard
    both the session and the partially populated model.

    Example:
        ```python
        with ProbeSession(syschar_model, engine) as session:
            syschar_model.set_sysinfo(session.query_sysinfo())
            session.query_objects()
        ```
    """

    def __init__(self, syschar_model: SystemCharacteristicsModel, engine: BaseProbeEngine):
        super().__init__()
        self.syschar_model = syschar_model
        self.engine = engine
        self._failure: ProbeError | None = None

    def __repr__(self) -> str:
        return f"ProbeSession(engine={type(self.engine).__name__})"

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def _guard(self) -> None:
        self._ensure_open()
        if self._failure is not None:
            raise ProbeSessionError(
                "Probe session is unusable after a failed query",
                self._failure.description or self._failure.message,
            )

    def _fail(self, error: ProbeError) -> None:
        self._failure = error
        logger.error(f"Probe query failed: {error}")

    def query_sysinfo(self) -> SystemInfo:
        """Ask the engine to describe the system."""
        self._guard()
        try:
            return self.engine.query_sysinfo()
        except ProbeError as e:
            self._fail(e)
            raise

    def query_object(self, object_id: str) -> CollectedObject:
        """Collect one object unless it has been collected already."""
        self._guard()
        collected = self.syschar_model.get_collected_object(object_id)
        if collected is not None:
            return collected

        obj = self.syschar_model.definition_model.objects.get(object_id)
        if obj is None:
            error = ProbeError(f"Object {object_id} is not defined")
            self._fail(error)
            raise error

        try:
            result = self.engine.collect(obj)
        except ProbeError as e:
            self._fail(e)
            raise
        logger.debug(f"Collected {object_id}: {result.flag.value} ({len(result.items)} items)")
        return self.syschar_model.add_probe_result(obj, result)

    def query_objects(self) -> None:
        """Collect every object of the definition model."""
        self._guard()
        for object_id in self.syschar_model.definition_model.objects:
            self.query_object(object_id)

    def query_definition(self, definition_id: str) -> None:
        """Collect the objects needed by one definition (and those it extends)."""
        self._guard()
        for object_id in self.syschar_model.definition_model.objects_for_definition(definition_id):
            self.query_object(object_id)
