"""
HTML report rendering for OVAL results.

Renders a results document through a jinja2 template registered under a
fixed name, so callers select a report by name rather than by file.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO, Any

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from oval_runner.core.aggregator import ResultAggregator
from oval_runner.core.results_model import load_results
from oval_runner.errors import DocumentImportError, ReportError
from oval_runner.models.results import ResultsDocument

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Report name -> template file
REPORT_TEMPLATES = {
    "oval-results-report": "oval-results-report.html.j2",
}


class ReportGenerator:
    """
    Render OVAL results documents to HTML.

    Example:
        ```python
        generator = ReportGenerator(title="Nightly compliance")
        generator.generate("results.xml", "oval-results-report", "report.html")
        ```
    """

    def __init__(self, templates_dir: str | Path | None = None, title: str = "OVAL Results"):
        """
        Initialize the generator.

        Args:
            templates_dir: Directory holding the report templates
            title: Heading used by the report
        """
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR
        self.title = title
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def available_reports(self) -> list[str]:
        return sorted(REPORT_TEMPLATES)

    def render(self, results: ResultsDocument, template_name: str = "oval-results-report") -> str:
        """
        Render an already loaded results document.

        Raises:
            ReportError: Unknown report name or template failure
        """
        filename = REPORT_TEMPLATES.get(template_name)
        if filename is None:
            raise ReportError(f"Unknown report template {template_name}")
        try:
            template = self.env.get_template(filename)
            return template.render(**self._context(results))
        except TemplateError as e:
            raise ReportError(f"Failed to render {template_name}", str(e)) from e

    def generate(
        self,
        results_path: str | Path,
        template_name: str = "oval-results-report",
        output: str | Path | IO[str] = "-",
    ) -> None:
        """
        Render a results file and write the report.

        Args:
            results_path: OVAL results document
            template_name: Registered report name
            output: File path, ``"-"`` for standard output, or a text stream

        Raises:
            ReportError: The results cannot be loaded, rendered or written
        """
        try:
            results = load_results(results_path)
        except DocumentImportError as e:
            raise ReportError(f"Failed to load results from {results_path}", e.description) from e

        html = self.render(results, template_name)

        if hasattr(output, "write"):
            output.write(html)
            return
        if str(output) == "-":
            sys.stdout.write(html)
            sys.stdout.flush()
            return
        try:
            Path(output).write_text(html, encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Failed to write report to {output}", str(e)) from e
        logger.info(f"Report written to {output}")

    def _context(self, results: ResultsDocument) -> dict[str, Any]:
        systems = []
        for system in results.systems:
            aggregator = ResultAggregator.from_verdicts(system.verdicts().values())
            rows = []
            for definition_id, result in system.definitions.items():
                rows.append({
                    "id": definition_id,
                    "version": result.version,
                    "title": results.definition_title(definition_id) or "",
                    "result": result.result.text,
                    "css": result.result.name.lower(),
                })
            systems.append({
                "sysinfo": system.sysinfo,
                "counts": [(verdict.label, count) for verdict, count in aggregator.counts.items()],
                "definitions": rows,
                "tests": len(system.tests),
            })

        return {
            "title": self.title,
            "generator": results.generator,
            "directives": [
                (verdict.text, policy.reported, policy.content.value)
                for verdict, policy in results.directives.policies.items()
            ],
            "systems": systems,
        }
