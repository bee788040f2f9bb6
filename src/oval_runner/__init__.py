"""
OVAL Runner - evaluate OVAL definitions against a system.

Validates OVAL content, collects system characteristics with local
probes, evaluates definitions live or against a captured snapshot and
exports OVAL results and HTML reports.
"""

from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.agent import EvaluationSession
from oval_runner.core.results_model import ResultsModel
from oval_runner.models.verdicts import Verdict

__version__ = "0.1.0"
__all__ = [
    "DefinitionModel",
    "EvaluationSession",
    "ResultsModel",
    "Verdict",
]
