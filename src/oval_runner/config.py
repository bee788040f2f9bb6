"""
Configuration management for OVAL Runner.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from oval_runner.core.validation import SUPPORTED_VERSIONS


@dataclass
class OutputSettings:
    """Console and output destinations."""

    verbosity: int = 0
    syschar_file: str = "-"
    report_file: str = "-"


@dataclass
class ValidationSettings:
    """Document validation."""

    enabled: bool = True
    schema_version: str = "5.11.2"  # written into exported documents
    supported_versions: list[str] = field(default_factory=lambda: list(SUPPORTED_VERSIONS))


@dataclass
class ProbeSettings:
    """Probe engine configuration."""

    engine: str = "local"
    disabled_probes: list[str] = field(default_factory=list)
    max_file_size: int = 10 * 1024 * 1024


@dataclass
class ReportSettings:
    """HTML report rendering."""

    template: str = "oval-results-report"
    title: str = "OVAL Results"


@dataclass
class FetchSettings:
    """Downloading documents given as URLs."""

    timeout: float = 30.0


@dataclass
class Config:
    """Main configuration container."""

    output: OutputSettings = field(default_factory=OutputSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    probe: ProbeSettings = field(default_factory=ProbeSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    fetch: FetchSettings = field(default_factory=FetchSettings)

    SECTIONS = ("output", "validation", "probe", "report", "fetch")

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        """
        Load configuration from file.

        Searches in order:
        1. Provided path
        2. Current directory (./oval-runner.yaml)
        3. User config (~/.oval-runner/config.yaml)
        4. Default values
        """
        config = cls()

        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        paths_to_try.extend([
            Path("./oval-runner.yaml"),
            Path("./oval-runner.yml"),
            Path.home() / ".oval-runner" / "config.yaml",
            Path.home() / ".oval-runner" / "config.yml",
        ])

        for path in paths_to_try:
            if path.exists():
                config._load_from_file(path)
                break

        config._load_from_env()

        return config

    def _load_from_file(self, path: Path) -> None:
        """Load settings from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        for section in self.SECTIONS:
            if section in data:
                section_obj = getattr(self, section)
                for key, value in (data[section] or {}).items():
                    if hasattr(section_obj, key):
                        setattr(section_obj, key, value)

    def _load_from_env(self) -> None:
        """Load settings from environment variables."""
        env_mappings = {
            "OVAL_RUNNER_VERBOSITY": ("output", "verbosity"),
            "OVAL_RUNNER_SYSCHAR_FILE": ("output", "syschar_file"),
            "OVAL_RUNNER_SCHEMA_VERSION": ("validation", "schema_version"),
            "OVAL_RUNNER_PROBE_ENGINE": ("probe", "engine"),
            "OVAL_RUNNER_FETCH_TIMEOUT": ("fetch", "timeout"),
        }

        for env_var, (section, key) in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                section_obj = getattr(self, section)

                # Type conversion
                current = getattr(section_obj, key)
                if isinstance(current, bool):
                    value = value.lower() in ("true", "1", "yes")
                elif isinstance(current, float):
                    value = float(value)
                elif isinstance(current, int):
                    value = int(value)

                setattr(section_obj, key, value)

    def save(self, path: str | Path) -> None:
        """Save configuration to file."""
        data = {
            "output": {
                "verbosity": self.output.verbosity,
                "syschar_file": self.output.syschar_file,
                "report_file": self.output.report_file,
            },
            "validation": {
                "enabled": self.validation.enabled,
                "schema_version": self.validation.schema_version,
                "supported_versions": self.validation.supported_versions,
            },
            "probe": {
                "engine": self.probe.engine,
                "disabled_probes": self.probe.disabled_probes,
                "max_file_size": self.probe.max_file_size,
            },
            "report": {
                "template": self.report.template,
                "title": self.report.title,
            },
            "fetch": {
                "timeout": self.fetch.timeout,
            },
        }

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Default config file template
DEFAULT_CONFIG_TEMPLATE = """# OVAL Runner Configuration

# Console and output destinations ("-" is standard output)
output:
  verbosity: 0  # -1 suppresses verdict lines and counts
  syschar_file: "-"
  report_file: "-"

# Document validation
validation:
  enabled: true
  schema_version: "5.11.2"  # generator version of exported documents

# Probe engine
probe:
  engine: local
  disabled_probes: []  # e.g. independent:environmentvariable
  max_file_size: 10485760

# HTML report
report:
  template: oval-results-report
  title: OVAL Results

# Downloads of documents given as URLs
fetch:
  timeout: 30
"""


def create_default_config(path: str | Path | None = None) -> Path:
    """Create default configuration file."""
    if path is None:
        path = Path.home() / ".oval-runner" / "config.yaml"

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        f.write(DEFAULT_CONFIG_TEMPLATE)

    return path
