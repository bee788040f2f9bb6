"""
Core modules: document models, evaluation and aggregation.
"""

from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.core.results_model import ResultsModel, load_results
from oval_runner.core.agent import EvaluationSession
from oval_runner.core.aggregator import Disposition, ResultAggregator, disposition
from oval_runner.core.validation import DocumentType, validate_document

__all__ = [
    "DefinitionModel",
    "SystemCharacteristicsModel",
    "ResultsModel",
    "load_results",
    "EvaluationSession",
    "Disposition",
    "ResultAggregator",
    "disposition",
    "DocumentType",
    "validate_document",
]
