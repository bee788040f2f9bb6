"""
Structural validation of OVAL documents.

Each document type is reduced to a plain skeleton (the elements and
attributes the runner relies on) and checked against pydantic models.
This catches missing sections, unsupported schema versions and unknown
enumeration values before a document reaches the importers.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Literal
from xml.etree import ElementTree as tree

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from oval_runner.core.xmlio import (
    NS_COMMON,
    NS_DEFINITIONS,
    NS_RESULTS,
    NS_SYSCHAR,
    q,
    split_tag,
)
from oval_runner.errors import ValidatorError
from oval_runner.models.verdicts import CheckOperator, ExistenceCheck, Verdict

logger = logging.getLogger(__name__)

INVALID_DOCUMENT_MSG = "Invalid document! Content does not match the OVAL schema."

SUPPORTED_VERSIONS = ("5.10", "5.10.1", "5.11", "5.11.1", "5.11.2")


class DocumentType(str, Enum):
    """Kinds of OVAL document the validator understands."""

    DEFINITIONS = "definitions"
    SYSCHAR = "syschar"
    RESULTS = "results"


_ROOTS = {
    DocumentType.DEFINITIONS: (NS_DEFINITIONS, "oval_definitions"),
    DocumentType.SYSCHAR: (NS_SYSCHAR, "oval_system_characteristics"),
    DocumentType.RESULTS: (NS_RESULTS, "oval_results"),
}


# ---------------------------------------------------------------------------
# Skeleton models
# ---------------------------------------------------------------------------

class _Skeleton(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GeneratorSkeleton(_Skeleton):
    schema_version: str = Field(min_length=1)

    @field_validator("schema_version")
    @classmethod
    def _check_version(cls, value: str, info: ValidationInfo) -> str:
        context = info.context or {}
        requested = context.get("version")
        if requested:
            if value != requested:
                raise ValueError(f"schema_version {value} does not match requested version {requested}")
        elif value not in context.get("supported", SUPPORTED_VERSIONS):
            raise ValueError(f"unsupported schema_version {value}")
        return value


class DefinitionSkeleton(_Skeleton):
    id: str = Field(min_length=1)
    version: int = Field(ge=0)
    definition_class: Literal["compliance", "inventory", "miscellaneous", "patch", "vulnerability"] = Field(
        alias="class"
    )
    title: str = Field(min_length=1)


class TestSkeleton(_Skeleton):
    __test__ = False

    id: str = Field(min_length=1)
    version: int = Field(ge=0)
    check: CheckOperator
    check_existence: ExistenceCheck = ExistenceCheck.AT_LEAST_ONE_EXISTS


class ComponentSkeleton(_Skeleton):
    id: str = Field(min_length=1)
    version: int = Field(ge=0)


class DefinitionsSkeleton(_Skeleton):
    generator: GeneratorSkeleton
    definitions: list[DefinitionSkeleton] = Field(min_length=1)
    tests: list[TestSkeleton] = Field(default_factory=list)
    objects: list[ComponentSkeleton] = Field(default_factory=list)
    states: list[ComponentSkeleton] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "DefinitionsSkeleton":
        # Ids are document keys
        for section in ("definitions", "tests", "objects", "states"):
            seen = set()
            for entry in getattr(self, section):
                if entry.id in seen:
                    raise ValueError(f"duplicate id {entry.id} in {section}")
                seen.add(entry.id)
        return self


class SystemInfoSkeleton(_Skeleton):
    os_name: str = Field(min_length=1)
    os_version: str = Field(min_length=1)
    architecture: str = Field(min_length=1)
    primary_host_name: str = Field(min_length=1)


class SyscharSkeleton(_Skeleton):
    generator: GeneratorSkeleton
    system_info: SystemInfoSkeleton


class DirectiveSkeleton(_Skeleton):
    reported: bool
    content: Literal["thin", "full"] = "full"


class DirectivesSkeleton(_Skeleton):
    definition_true: DirectiveSkeleton
    definition_false: DirectiveSkeleton
    definition_error: DirectiveSkeleton
    definition_unknown: DirectiveSkeleton
    definition_not_evaluated: DirectiveSkeleton
    definition_not_applicable: DirectiveSkeleton


class ResultDefinitionSkeleton(_Skeleton):
    definition_id: str = Field(min_length=1)
    result: str

    @field_validator("result")
    @classmethod
    def _check_result(cls, value: str) -> str:
        Verdict.from_text(value)
        return value


class ResultSystemSkeleton(_Skeleton):
    definitions: list[ResultDefinitionSkeleton] = Field(default_factory=list)
    system_characteristics: SyscharSkeleton


class ResultsSkeleton(_Skeleton):
    generator: GeneratorSkeleton
    directives: DirectivesSkeleton
    systems: list[ResultSystemSkeleton] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Element tree to skeleton data
# ---------------------------------------------------------------------------

def _text(parent: tree.Element, namespace: str, local: str) -> str | None:
    child = parent.find(q(namespace, local))
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    # Absent values stay absent so pydantic reports them as missing
    if value is not None:
        data[key] = value


def _generator(root: tree.Element, namespace: str) -> dict[str, Any] | None:
    element = root.find(q(namespace, "generator"))
    if element is None:
        return None
    data: dict[str, Any] = {}
    _put(data, "schema_version", _text(element, NS_COMMON, "schema_version"))
    return data


def _definitions_data(root: tree.Element) -> dict[str, Any]:
    data: dict[str, Any] = {}
    _put(data, "generator", _generator(root, NS_DEFINITIONS))

    section = root.find(q(NS_DEFINITIONS, "definitions"))
    if section is not None:
        definitions = []
        for element in section.findall(q(NS_DEFINITIONS, "definition")):
            definition = dict(element.attrib)
            metadata = element.find(q(NS_DEFINITIONS, "metadata"))
            if metadata is not None:
                _put(definition, "title", _text(metadata, NS_DEFINITIONS, "title"))
            definitions.append(definition)
        data["definitions"] = definitions

    for name in ("tests", "objects", "states"):
        section = root.find(q(NS_DEFINITIONS, name))
        if section is not None:
            data[name] = [dict(element.attrib) for element in section]

    return data


def _syschar_data(root: tree.Element) -> dict[str, Any]:
    data: dict[str, Any] = {}
    _put(data, "generator", _generator(root, NS_SYSCHAR))
    element = root.find(q(NS_SYSCHAR, "system_info"))
    if element is not None:
        info: dict[str, Any] = {}
        for name in ("os_name", "os_version", "architecture", "primary_host_name"):
            _put(info, name, _text(element, NS_SYSCHAR, name))
        data["system_info"] = info
    return data


def _results_data(root: tree.Element) -> dict[str, Any]:
    data: dict[str, Any] = {}
    _put(data, "generator", _generator(root, NS_RESULTS))

    element = root.find(q(NS_RESULTS, "directives"))
    if element is not None:
        data["directives"] = {split_tag(child.tag)[1]: dict(child.attrib) for child in element}

    results = root.find(q(NS_RESULTS, "results"))
    if results is not None:
        systems = []
        for system in results.findall(q(NS_RESULTS, "system")):
            entry: dict[str, Any] = {}
            definitions = system.find(q(NS_RESULTS, "definitions"))
            if definitions is not None:
                entry["definitions"] = [dict(e.attrib) for e in definitions.findall(q(NS_RESULTS, "definition"))]
            syschar = system.find(q(NS_SYSCHAR, "oval_system_characteristics"))
            if syschar is not None:
                entry["system_characteristics"] = _syschar_data(syschar)
            systems.append(entry)
        data["systems"] = systems

    return data


_SKELETONS: dict[DocumentType, tuple[type[_Skeleton], Callable[[tree.Element], dict[str, Any]]]] = {
    DocumentType.DEFINITIONS: (DefinitionsSkeleton, _definitions_data),
    DocumentType.SYSCHAR: (SyscharSkeleton, _syschar_data),
    DocumentType.RESULTS: (ResultsSkeleton, _results_data),
}


def _format_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


def validate_document(
    path: str | Path,
    doctype: DocumentType | str = DocumentType.DEFINITIONS,
    version: str | None = None,
    supported_versions: tuple[str, ...] | list[str] = SUPPORTED_VERSIONS,
    reporter: Callable[[str], None] | None = None,
) -> bool:
    """
    Validate an OVAL document.

    Args:
        path: Document to validate
        doctype: Which OVAL document type the file should be
        version: Schema version the document must declare; any supported
            version is accepted when omitted
        supported_versions: Versions the validator knows about
        reporter: Called with every validation message

    Returns:
        True when the document is valid

    Raises:
        ValidatorError: The file cannot be read, or ``version`` is not supported
    """
    doctype = DocumentType(doctype)
    if version is not None and version not in supported_versions:
        raise ValidatorError(f"Unsupported schema version {version}", f"known versions: {', '.join(supported_versions)}")

    def report(message: str) -> None:
        logger.debug(f"{path}: {message}")
        if reporter is not None:
            reporter(message)

    try:
        root = tree.parse(str(path)).getroot()
    except tree.ParseError as e:
        report(f"XML syntax error: {e}")
        return False
    except OSError as e:
        raise ValidatorError(f"Unable to read {path}", str(e)) from e

    namespace, local = _ROOTS[doctype]
    if root.tag != q(namespace, local):
        found_ns, found_local = split_tag(root.tag)
        report(f"Expected root element {local} in {namespace}, found {found_local} in {found_ns or 'no namespace'}")
        return False

    skeleton, extract = _SKELETONS[doctype]
    try:
        skeleton.model_validate(
            extract(root),
            context={"version": version, "supported": tuple(supported_versions)},
        )
    except ValidationError as e:
        for error in e.errors():
            report(_format_error(error))
        return False

    logger.info(f"{path} is a valid OVAL {doctype.value} document")
    return True
