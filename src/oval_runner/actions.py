"""
Action handlers for the OVAL workflows.

Each handler sequences the models and sessions of one workflow (collect,
evaluate, analyse, report, validate), prints the console summary and
maps the outcome to an ``ExitStatus``. Every model or session a handler
acquires is entered into an ``ExitStack``, so each exit path releases
exactly what was acquired up to that point.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path

from rich.console import Console

from oval_runner.config import Config
from oval_runner.core.agent import EvaluationSession
from oval_runner.core.aggregator import Disposition, ResultAggregator, disposition
from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.results_model import ResultsModel
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.core.validation import INVALID_DOCUMENT_MSG, DocumentType, validate_document
from oval_runner.errors import (
    DocumentExportError,
    DocumentImportError,
    EvaluationError,
    IncompleteModelError,
    ProbeError,
    ReportError,
    SessionError,
    ValidatorError,
)
from oval_runner.integrations.fetch import acquire_content, display_name
from oval_runner.integrations.report import ReportGenerator
from oval_runner.models.results import ResultDirectives
from oval_runner.models.verdicts import Verdict
from oval_runner.probes.engine import BaseProbeEngine, create_probe_engine
from oval_runner.probes.session import ProbeSession

logger = logging.getLogger(__name__)


class ExitStatus(IntEnum):
    """Process exit statuses of the workflows."""

    OK = 0
    ERROR = 1
    FAIL = 2
    USAGE = 64

    @classmethod
    def from_disposition(cls, value: Disposition) -> "ExitStatus":
        return cls.OK if value is Disposition.PASS else cls.FAIL


@dataclass
class ActionContext:
    """
    What every workflow needs besides its own arguments.

    Verbosity is carried here instead of in a global: ``-1`` suppresses
    verdict lines, banners and counts.
    """

    config: Config = field(default_factory=Config)
    console: Console = field(default_factory=lambda: Console(highlight=False, emoji=False, soft_wrap=True))
    err_console: Console = field(default_factory=lambda: Console(stderr=True, highlight=False, emoji=False, soft_wrap=True))
    verbosity: int = 0

    @property
    def quiet(self) -> bool:
        return self.verbosity < 0

    def out(self, message: str) -> None:
        """Print to standard output unless quiet."""
        if not self.quiet:
            self.console.print(message, markup=False)

    def show(self, message: str) -> None:
        """Print to standard output regardless of verbosity."""
        self.console.print(message, markup=False)

    def error(self, message: str) -> None:
        self.err_console.print(message, markup=False)

    def create_engine(self) -> BaseProbeEngine:
        probe = self.config.probe
        return create_probe_engine(probe.engine, probe.disabled_probes, probe.max_file_size)


def _import_definitions(stack: ExitStack, path: Path, source: str, ctx: ActionContext) -> DefinitionModel | None:
    try:
        return stack.enter_context(DefinitionModel.import_file(path))
    except DocumentImportError as e:
        ctx.error(f"Failed to import the definition model ({source}).")
        if e.description:
            ctx.error(f"ERROR: {e.description}")
        return None


def _run_validation(path: Path, doctype: DocumentType, version: str | None, ctx: ActionContext) -> ExitStatus:
    try:
        valid = validate_document(
            path,
            doctype,
            version=version,
            supported_versions=tuple(ctx.config.validation.supported_versions),
            reporter=ctx.out,
        )
    except ValidatorError as e:
        ctx.error(f"ERROR: {e.description or e.message}")
        return ExitStatus.ERROR
    if not valid:
        ctx.show(INVALID_DOCUMENT_MSG)
        return ExitStatus.FAIL
    return ExitStatus.OK


def validate_xml(
    source: str,
    ctx: ActionContext,
    doctype: DocumentType = DocumentType.DEFINITIONS,
    version: str | None = None,
) -> ExitStatus:
    """Validate one document; invalid content is a policy failure."""
    with ExitStack() as stack:
        try:
            path = stack.enter_context(acquire_content(source, ctx.config.fetch.timeout))
        except DocumentImportError as e:
            ctx.error(f"ERROR: {e}")
            return ExitStatus.ERROR
        return _run_validation(path, DocumentType(doctype), version, ctx)


def collect_system(source: str, ctx: ActionContext, output: str | None = None) -> ExitStatus:
    """
    Probe the local system for every object of a definitions document and
    write the system characteristics.

    Nothing is written when probing fails.
    """
    destination = output or ctx.config.output.syschar_file
    with ExitStack() as stack:
        try:
            path = stack.enter_context(acquire_content(source, ctx.config.fetch.timeout))
        except DocumentImportError as e:
            ctx.error(f"Failed to import the definition model ({source}).")
            ctx.error(f"ERROR: {e.description or e.message}")
            return ExitStatus.ERROR

        model = _import_definitions(stack, path, source, ctx)
        if model is None:
            return ExitStatus.ERROR

        syschar = stack.enter_context(SystemCharacteristicsModel(model))
        try:
            engine = ctx.create_engine()
        except ValueError as e:
            ctx.error(f"Error: {e}")
            return ExitStatus.ERROR
        stack.callback(engine.close)
        session = stack.enter_context(ProbeSession(syschar, engine))

        try:
            syschar.set_sysinfo(session.query_sysinfo())
            session.query_objects()
        except ProbeError as e:
            ctx.error(f"Error: {e.description or e.message}")
            return ExitStatus.ERROR

        try:
            syschar.export(destination, ctx.config.validation.schema_version)
        except (DocumentExportError, IncompleteModelError) as e:
            ctx.error(f"Error: {e}")
            return ExitStatus.ERROR

    return ExitStatus.OK


def _export_results(results: ResultsModel, result_file: str, ctx: ActionContext) -> bool:
    try:
        results.export(ResultDirectives.full(), result_file, ctx.config.validation.schema_version)
    except (DocumentExportError, IncompleteModelError) as e:
        ctx.error(f"Error: {e}")
        return False
    return True


def evaluate_definitions(
    source: str,
    ctx: ActionContext,
    definition_id: str | None = None,
    result_file: str | None = None,
    report_file: str | None = None,
    validate: bool = True,
) -> ExitStatus:
    """
    Evaluate a definitions document against the local system.

    Args:
        source: Definitions document (path or URL)
        ctx: Configuration, consoles and verbosity
        definition_id: Evaluate only this definition
        result_file: Export OVAL results here
        report_file: Also render the HTML report here (needs ``result_file``)
        validate: Validate the document before importing it

    Returns:
        ``OK`` when no ``false`` or ``unknown`` verdict was produced,
        ``FAIL`` otherwise, ``ERROR`` when the workflow could not finish
    """
    with ExitStack() as stack:
        try:
            path = stack.enter_context(acquire_content(source, ctx.config.fetch.timeout))
        except DocumentImportError as e:
            ctx.error(f"Failed to import the definition model ({source}).")
            ctx.error(f"ERROR: {e.description or e.message}")
            return ExitStatus.ERROR

        if validate:
            status = _run_validation(path, DocumentType.DEFINITIONS, None, ctx)
            if status is not ExitStatus.OK:
                return status

        model = _import_definitions(stack, path, source, ctx)
        if model is None:
            return ExitStatus.ERROR

        try:
            engine = ctx.create_engine()
            stack.callback(engine.close)
            session = stack.enter_context(EvaluationSession(model, display_name(source), engine))
        except (SessionError, ValueError) as e:
            ctx.error(f"Error: {e}")
            ctx.error("Failed to create new agent session.")
            return ExitStatus.ERROR

        aggregator = ResultAggregator()
        verdicts: list[Verdict] = []
        try:
            if definition_id:
                verdict = session.eval_definition(definition_id)
                ctx.out(f"Definition {definition_id}: {verdict.text}")
                verdicts.append(verdict)
            else:
                for evaluated_id, verdict in aggregator.consume(session.eval_system()):
                    ctx.out(f"Definition {evaluated_id}: {verdict.text}")
        except EvaluationError as e:
            ctx.error(f"Error: {e.description or e.message}")
            return ExitStatus.ERROR

        ctx.out("Evaluation done.")

        if not definition_id:
            for line in aggregator.report_lines():
                ctx.out(line)

        if result_file:
            if not _export_results(session.get_results_model(), result_file, ctx):
                return ExitStatus.ERROR
            if report_file:
                _render_report(result_file, report_file, ctx)
        elif report_file:
            logger.warning("--report-file is ignored without --result-file")

    result = disposition(verdicts if definition_id else aggregator.counts)
    logger.info(f"Evaluation of {source}: {result.value}")
    return ExitStatus.from_disposition(result)


def _render_report(results_path: str | Path, output: str, ctx: ActionContext) -> bool:
    report = ctx.config.report
    try:
        ReportGenerator(title=report.title).generate(results_path, report.template, output)
    except ReportError as e:
        ctx.error(f"Error: {e}")
        return False
    return True


def analyse_system_characteristics(
    definitions: str,
    syschar_file: str,
    ctx: ActionContext,
    result_file: str | None = None,
) -> ExitStatus:
    """
    Evaluate definitions against previously collected system characteristics.

    Succeeds whenever the documents import, whatever the verdicts are.
    """
    with ExitStack() as stack:
        try:
            path = stack.enter_context(acquire_content(definitions, ctx.config.fetch.timeout))
        except DocumentImportError as e:
            ctx.error(f"Failed to import the definition model ({definitions}).")
            ctx.error(f"ERROR: {e.description or e.message}")
            return ExitStatus.ERROR

        model = _import_definitions(stack, path, definitions, ctx)
        if model is None:
            return ExitStatus.ERROR

        syschar = stack.enter_context(SystemCharacteristicsModel(model))
        try:
            syschar_path = stack.enter_context(acquire_content(syschar_file, ctx.config.fetch.timeout))
            syschar.import_file(syschar_path)
        except DocumentImportError as e:
            ctx.error(f"Failed to import the system characteristics model ({syschar_file}).")
            if e.description:
                ctx.error(f"ERROR: {e.description}")
            return ExitStatus.ERROR

        results = stack.enter_context(ResultsModel(model, [syschar]))
        results.evaluate()
        logger.info(f"Analysed {len(results.verdicts())} definitions from {syschar_file}")

        if result_file and not _export_results(results, result_file, ctx):
            return ExitStatus.ERROR

    return ExitStatus.OK


def generate_report(results_file: str, ctx: ActionContext, output: str | None = None) -> ExitStatus:
    """Render an OVAL results document to HTML."""
    destination = output or ctx.config.output.report_file
    with ExitStack() as stack:
        try:
            path = stack.enter_context(acquire_content(results_file, ctx.config.fetch.timeout))
        except DocumentImportError as e:
            ctx.error(f"Error: {e}")
            return ExitStatus.ERROR
        if not _render_report(path, destination, ctx):
            return ExitStatus.ERROR
    return ExitStatus.OK
