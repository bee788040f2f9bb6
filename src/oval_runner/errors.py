"""
Exception hierarchy for OVAL Runner.

Every collaborator failure surfaces as an ``OvalError`` subclass. The
action handlers catch them step by step and map them to exit statuses.
"""

from __future__ import annotations

from pathlib import Path


class OvalError(Exception):
    """Base exception for all OVAL processing failures."""

    def __init__(
        self,
        message: str,
        description: str | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Short, user facing message
            description: Underlying error text, when a collaborator provided one
        """
        super().__init__(message)
        self.message = message
        self.description = description

    def __str__(self) -> str:
        if self.description:
            return f"{self.message}: {self.description}"
        return self.message


class DocumentImportError(OvalError):
    """A document could not be read, parsed or loaded into a model."""

    def __init__(self, path: str | Path, description: str | None = None):
        super().__init__(f"Failed to import {path}", description)
        self.path = str(path)


class DocumentExportError(OvalError):
    """A model could not be serialized to its destination."""


class ValidatorError(OvalError):
    """The validator itself failed (as opposed to the document being invalid)."""


class ProbeError(OvalError):
    """The probe engine failed to collect system information or objects."""


class ProbeSessionError(ProbeError):
    """A probe session was used after a failed query or after being closed."""


class SessionError(OvalError):
    """An evaluation session could not be opened."""


class EvaluationError(OvalError):
    """Evaluation could not complete (distinct from an ``error`` verdict)."""


class ReportError(OvalError):
    """The report renderer failed."""


class ModelReleasedError(OvalError):
    """A model or session was used after it was released."""


class IncompleteModelError(OvalError):
    """A model is missing data required for the requested operation."""
