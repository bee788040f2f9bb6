"""
CLI interface for OVAL Runner.

Provides the ``oval`` command: validate OVAL documents, collect system
characteristics, evaluate definitions against the local system or a
captured snapshot, and render HTML reports.
"""

from __future__ import annotations

import logging
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from oval_runner import __version__
from oval_runner.actions import (
    ActionContext,
    ExitStatus,
    analyse_system_characteristics,
    collect_system,
    evaluate_definitions,
    generate_report,
    validate_xml,
)
from oval_runner.config import Config
from oval_runner.core.validation import DocumentType

# Standard output carries documents and verdicts; diagnostics go to stderr
console = Console(highlight=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )
    logging.getLogger("oval_runner").setLevel(level)


class UsageExitMixin:
    """Exit with ``ExitStatus.USAGE`` on command line usage errors."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = ExitStatus.USAGE
            raise


class OvalCommand(UsageExitMixin, click.Command):
    pass


class OvalGroup(UsageExitMixin, click.Group):
    command_class = OvalCommand
    group_class = type

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = ExitStatus.USAGE
            raise


def _action_context(ctx: click.Context) -> ActionContext:
    return ctx.obj["action"]


@click.group(cls=OvalGroup)
@click.version_option(version=__version__, prog_name="oval")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Suppress verdict lines and counts")
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file (YAML)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, config_path: Optional[str]) -> None:
    """
    OVAL Runner - evaluate OVAL definitions.

    Validate OVAL content, collect system characteristics and evaluate
    definitions against this system or a captured snapshot.
    """
    setup_logging(verbose)

    try:
        config = Config.load(config_path)
    except (OSError, yaml.YAMLError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    ctx.obj["action"] = ActionContext(
        config=config,
        console=console,
        err_console=err_console,
        verbosity=-1 if quiet else config.output.verbosity,
    )


@main.command("validate-xml")
@click.argument("file")
@click.option("--definitions", "doctype", flag_value=DocumentType.DEFINITIONS.value, default=True,
              help="Validate as OVAL definitions (default)")
@click.option("--syschar", "doctype", flag_value=DocumentType.SYSCHAR.value,
              help="Validate as OVAL system characteristics")
@click.option("--results", "doctype", flag_value=DocumentType.RESULTS.value,
              help="Validate as OVAL results")
@click.option("--file-version", "--version", "file_version", help="Schema version the document must declare")
@click.pass_context
def validate_xml_command(ctx: click.Context, file: str, doctype: str, file_version: Optional[str]) -> None:
    """
    Validate an OVAL document.

    Exits 0 when valid and 2 when the document does not match the schema.
    """
    status = validate_xml(file, _action_context(ctx), DocumentType(doctype), file_version)
    ctx.exit(int(status))


@main.command("eval")
@click.argument("definitions")
@click.option("--id", "definition_id", help="Evaluate only this definition")
@click.option("--result-file", type=click.Path(dir_okay=False), help="Write OVAL results to this file")
@click.option("--report-file", type=click.Path(dir_okay=False), help="Write an HTML report (needs --result-file)")
@click.option("--skip-valid", is_flag=True, help="Do not validate the definitions first")
@click.pass_context
def eval_command(
    ctx: click.Context,
    definitions: str,
    definition_id: Optional[str],
    result_file: Optional[str],
    report_file: Optional[str],
    skip_valid: bool,
) -> None:
    """
    Evaluate definitions against this system.

    Exits 0 when no definition is false or unknown, 2 otherwise.
    """
    action = _action_context(ctx)
    status = evaluate_definitions(
        definitions,
        action,
        definition_id=definition_id,
        result_file=result_file,
        report_file=report_file,
        validate=action.config.validation.enabled and not skip_valid,
    )
    ctx.exit(int(status))


@main.command("collect")
@click.argument("definitions")
@click.option("-o", "--output", type=click.Path(dir_okay=False),
              help="Write system characteristics here instead of the configured destination")
@click.pass_context
def collect_command(ctx: click.Context, definitions: str, output: Optional[str]) -> None:
    """
    Collect system characteristics for the objects of a definitions file.
    """
    ctx.exit(int(collect_system(definitions, _action_context(ctx), output)))


@main.command("analyse")
@click.argument("definitions")
@click.argument("syschar")
@click.option("--result-file", type=click.Path(dir_okay=False), help="Write OVAL results to this file")
@click.pass_context
def analyse_command(ctx: click.Context, definitions: str, syschar: str, result_file: Optional[str]) -> None:
    """
    Evaluate definitions against captured system characteristics.

    Exits 0 whenever both documents import, whatever the verdicts.
    """
    status = analyse_system_characteristics(definitions, syschar, _action_context(ctx), result_file)
    ctx.exit(int(status))


@main.group("generate")
def generate() -> None:
    """Generate reports from OVAL results."""


@generate.command("report")
@click.argument("results")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write the report here")
@click.pass_context
def report_command(ctx: click.Context, results: str, output: Optional[str]) -> None:
    """
    Render an OVAL results document to HTML.
    """
    ctx.exit(int(generate_report(results, _action_context(ctx), output)))


@main.command("init-config")
@click.argument("path", required=False, type=click.Path(dir_okay=False))
def init_config(path: Optional[str]) -> None:
    """
    Write a default configuration file.
    """
    from oval_runner.config import create_default_config

    written = create_default_config(path)
    console.print(f"Configuration written to {written}", markup=False)


if __name__ == "__main__":
    main()
