"""
Data models for OVAL definitions, system characteristics and results.
"""

from oval_runner.models.verdicts import (
    Verdict,
    Operator,
    CheckOperator,
    ExistenceCheck,
    ObjectFlag,
    ItemStatus,
    ContentLevel,
)
from oval_runner.models.definitions import (
    Generator,
    Entity,
    ObjectDef,
    StateDef,
    TestDef,
    Criteria,
    Criterion,
    ExtendDefinition,
    Reference,
    Definition,
    DefinitionsDocument,
)
from oval_runner.models.syschar import (
    SystemInfo,
    NetworkInterface,
    Item,
    ItemEntity,
    CollectedObject,
    ProbeResult,
)
from oval_runner.models.results import (
    CriteriaResult,
    CriterionResult,
    ExtendDefinitionResult,
    DefinitionResult,
    TestResult,
    TestedItem,
    ResultSystem,
    DirectivePolicy,
    ResultDirectives,
    ResultsDocument,
)

__all__ = [
    # Enumerations
    "Verdict",
    "Operator",
    "CheckOperator",
    "ExistenceCheck",
    "ObjectFlag",
    "ItemStatus",
    "ContentLevel",
    # Definitions
    "Generator",
    "Entity",
    "ObjectDef",
    "StateDef",
    "TestDef",
    "Criteria",
    "Criterion",
    "ExtendDefinition",
    "Reference",
    "Definition",
    "DefinitionsDocument",
    # System characteristics
    "SystemInfo",
    "NetworkInterface",
    "Item",
    "ItemEntity",
    "CollectedObject",
    "ProbeResult",
    # Results
    "CriteriaResult",
    "CriterionResult",
    "ExtendDefinitionResult",
    "DefinitionResult",
    "TestResult",
    "TestedItem",
    "ResultSystem",
    "DirectivePolicy",
    "ResultDirectives",
    "ResultsDocument",
]
