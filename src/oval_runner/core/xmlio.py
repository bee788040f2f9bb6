"""
OVAL XML reading and writing.

Converts between ElementTree documents and the pydantic records in
``oval_runner.models`` for the three OVAL 5 document types: definitions,
system characteristics and results.

Structural problems raise ``ValueError``; XML syntax problems raise
``xml.etree.ElementTree.ParseError``. Callers wrap both into the model
level import errors.
"""

from __future__ import annotations

import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterable
from xml.etree import ElementTree as tree

from oval_runner.models.definitions import (
    Criteria,
    Criterion,
    Definition,
    DefinitionsDocument,
    Entity,
    ExtendDefinition,
    Generator,
    ObjectDef,
    Reference,
    StateDef,
    TestDef,
)
from oval_runner.models.results import (
    CriteriaResult,
    CriterionResult,
    DefinitionResult,
    DirectivePolicy,
    ExtendDefinitionResult,
    ResultDirectives,
    ResultsDocument,
    ResultSystem,
    TestedItem,
    TestResult,
)
from oval_runner.models.syschar import (
    CollectedObject,
    Item,
    ItemEntity,
    NetworkInterface,
    SystemInfo,
)
from oval_runner.models.verdicts import (
    CheckOperator,
    ContentLevel,
    ExistenceCheck,
    ItemStatus,
    ObjectFlag,
    Operator,
    Verdict,
)

logger = logging.getLogger(__name__)

NS_COMMON = "http://oval.mitre.org/XMLSchema/oval-common-5"
NS_DEFINITIONS = "http://oval.mitre.org/XMLSchema/oval-definitions-5"
NS_SYSCHAR = "http://oval.mitre.org/XMLSchema/oval-system-characteristics-5"
NS_RESULTS = "http://oval.mitre.org/XMLSchema/oval-results-5"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

PRODUCT_NAME = "oval-runner"

# Prefixes used when writing family specific elements
FAMILY_PREFIXES = {
    "independent": "ind",
    "unix": "unix",
    "linux": "linux",
    "windows": "win",
    "macos": "macos",
}

tree.register_namespace("oval", NS_COMMON)
tree.register_namespace("oval-def", NS_DEFINITIONS)
tree.register_namespace("oval-sc", NS_SYSCHAR)
tree.register_namespace("oval-res", NS_RESULTS)
tree.register_namespace("xsi", NS_XSI)
for _family, _prefix in FAMILY_PREFIXES.items():
    tree.register_namespace(f"{_prefix}-def", f"{NS_DEFINITIONS}#{_family}")
    tree.register_namespace(f"{_prefix}-sys", f"{NS_SYSCHAR}#{_family}")

# Elements in the core definitions namespace that are not entities
_NON_ENTITY_TAGS = {"notes", "set", "filter", "behaviors"}


def q(namespace: str, local: str) -> str:
    """Build a Clark-notation qualified name."""
    return f"{{{namespace}}}{local}"


def split_tag(tag: str) -> tuple[str, str]:
    """Split a Clark-notation tag into ``(namespace, local name)``."""
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def family_of(namespace: str, base: str) -> str:
    """Return the family fragment of a family namespace (``...#unix`` -> ``unix``)."""
    if not namespace.startswith(base + "#"):
        raise ValueError(f"Element namespace {namespace!r} is not an OVAL family of {base}")
    return namespace.split("#", 1)[1]


def _bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("true", "1")


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


# Characters outside the XML 1.0 Char production
_XML_FORBIDDEN = re.compile("[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def xml_text(value: str | None) -> str | None:
    """Replace characters XML cannot carry with U+FFFD."""
    if value is None:
        return None
    return _XML_FORBIDDEN.sub("\uFFFD", value)


def _scrub(root: tree.Element) -> None:
    for element in root.iter():
        element.text = xml_text(element.text)
        element.tail = xml_text(element.tail)
        for name, value in list(element.attrib.items()):
            element.set(name, xml_text(value))


def _child_text(parent: tree.Element, namespace: str, local: str) -> str | None:
    child = parent.find(q(namespace, local))
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _require(element: tree.Element, attribute: str) -> str:
    value = element.get(attribute)
    if value is None:
        _, local = split_tag(element.tag)
        raise ValueError(f"<{local}> is missing required attribute {attribute!r}")
    return value


def _expect_root(root: tree.Element, namespace: str, local: str) -> None:
    if root.tag != q(namespace, local):
        found_ns, found_local = split_tag(root.tag)
        raise ValueError(
            f"Expected root element <{local}> in {namespace}, "
            f"found <{found_local}>{' in ' + found_ns if found_ns else ''}"
        )


# ---------------------------------------------------------------------------
# Reading and writing raw documents
# ---------------------------------------------------------------------------

def read_document(path: str | Path) -> tree.Element:
    """Parse an XML file and return its root element."""
    return tree.parse(str(path)).getroot()


def write_document(root: tree.Element, destination: str | Path | IO[str]) -> None:
    """
    Serialize a document.

    Args:
        root: Root element of the document
        destination: File path, ``"-"`` for standard output, or a text stream
    """
    _scrub(root)
    tree.indent(root, space="  ")
    text = '<?xml version="1.0" encoding="UTF-8"?>\n' + tree.tostring(root, encoding="unicode") + "\n"

    if hasattr(destination, "write"):
        destination.write(text)
        return

    if str(destination) == "-":
        sys.stdout.write(text)
        sys.stdout.flush()
        return

    path = Path(destination)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    logger.debug(f"Wrote {path}")


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

def parse_generator(element: tree.Element | None) -> Generator:
    if element is None:
        raise ValueError("Document has no <generator> element")
    schema_version = _child_text(element, NS_COMMON, "schema_version")
    if not schema_version:
        raise ValueError("<generator> has no schema_version")
    return Generator(
        product_name=_child_text(element, NS_COMMON, "product_name"),
        product_version=_child_text(element, NS_COMMON, "product_version"),
        schema_version=schema_version,
        timestamp=_child_text(element, NS_COMMON, "timestamp"),
    )


def build_generator(parent: tree.Element, namespace: str, schema_version: str) -> tree.Element:
    """Append a fresh ``generator`` block naming this tool."""
    from oval_runner import __version__

    element = tree.SubElement(parent, q(namespace, "generator"))
    tree.SubElement(element, q(NS_COMMON, "product_name")).text = PRODUCT_NAME
    tree.SubElement(element, q(NS_COMMON, "product_version")).text = __version__
    tree.SubElement(element, q(NS_COMMON, "schema_version")).text = schema_version
    tree.SubElement(element, q(NS_COMMON, "timestamp")).text = (
        datetime.now(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%S")
    )
    return element


def _copy_generator(parent: tree.Element, namespace: str, generator: Generator) -> None:
    element = tree.SubElement(parent, q(namespace, "generator"))
    for name in ("product_name", "product_version", "schema_version", "timestamp"):
        value = getattr(generator, name)
        if value is not None:
            tree.SubElement(element, q(NS_COMMON, name)).text = value


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

def _parse_criteria(element: tree.Element) -> Criteria:
    children: list[Criteria | Criterion | ExtendDefinition] = []
    for child in element:
        namespace, local = split_tag(child.tag)
        if namespace != NS_DEFINITIONS:
            continue
        if local == "criteria":
            children.append(_parse_criteria(child))
        elif local == "criterion":
            children.append(Criterion(
                test_ref=_require(child, "test_ref"),
                negate=_bool(child.get("negate")),
                comment=child.get("comment"),
            ))
        elif local == "extend_definition":
            children.append(ExtendDefinition(
                definition_ref=_require(child, "definition_ref"),
                negate=_bool(child.get("negate")),
                comment=child.get("comment"),
            ))
    return Criteria(
        operator=Operator(element.get("operator", "AND")),
        negate=_bool(element.get("negate")),
        comment=element.get("comment"),
        children=tuple(children),
    )


def _parse_definition(element: tree.Element) -> Definition:
    metadata = element.find(q(NS_DEFINITIONS, "metadata"))
    title = description = None
    references: list[Reference] = []
    if metadata is not None:
        title = _child_text(metadata, NS_DEFINITIONS, "title")
        description = _child_text(metadata, NS_DEFINITIONS, "description")
        for ref in metadata.findall(q(NS_DEFINITIONS, "reference")):
            references.append(Reference(
                source=ref.get("source", ""),
                ref_id=ref.get("ref_id", ""),
                ref_url=ref.get("ref_url"),
            ))

    criteria = element.find(q(NS_DEFINITIONS, "criteria"))
    return Definition(
        id=_require(element, "id"),
        version=_require(element, "version"),
        definition_class=element.get("class", "compliance"),
        title=title,
        description=description,
        references=tuple(references),
        deprecated=_bool(element.get("deprecated")),
        criteria=_parse_criteria(criteria) if criteria is not None else None,
    )


def _parse_entities(element: tree.Element) -> tuple[Entity, ...]:
    entities = []
    for child in element:
        _, local = split_tag(child.tag)
        if local in _NON_ENTITY_TAGS:
            continue
        entities.append(Entity(
            name=local,
            value=child.text.strip() if child.text is not None else None,
            operation=child.get("operation", "equals"),
            datatype=child.get("datatype", "string"),
            entity_check=child.get("entity_check", "all"),
            nil=_bool(child.get(q(NS_XSI, "nil"))),
        ))
    return tuple(entities)


def _strip_suffix(local: str, suffix: str) -> str:
    if not local.endswith(suffix):
        raise ValueError(f"Unexpected element <{local}>, expected a *{suffix} element")
    return local[: -len(suffix)]


def _parse_test(element: tree.Element) -> TestDef:
    namespace, local = split_tag(element.tag)
    obj = element.find(f"{{{namespace}}}object")
    return TestDef(
        id=_require(element, "id"),
        version=_require(element, "version"),
        family=family_of(namespace, NS_DEFINITIONS),
        type=_strip_suffix(local, "_test"),
        check=CheckOperator(element.get("check", "all")),
        check_existence=ExistenceCheck(element.get("check_existence", "at_least_one_exists")),
        state_operator=Operator(element.get("state_operator", "AND")),
        object_ref=obj.get("object_ref") if obj is not None else None,
        state_refs=tuple(
            _require(state, "state_ref") for state in element.findall(f"{{{namespace}}}state")
        ),
        comment=element.get("comment"),
    )


def _parse_object(element: tree.Element) -> ObjectDef:
    namespace, local = split_tag(element.tag)
    return ObjectDef(
        id=_require(element, "id"),
        version=_require(element, "version"),
        family=family_of(namespace, NS_DEFINITIONS),
        type=_strip_suffix(local, "_object"),
        comment=element.get("comment"),
        entities=_parse_entities(element),
    )


def _parse_state(element: tree.Element) -> StateDef:
    namespace, local = split_tag(element.tag)
    return StateDef(
        id=_require(element, "id"),
        version=_require(element, "version"),
        family=family_of(namespace, NS_DEFINITIONS),
        type=_strip_suffix(local, "_state"),
        operator=Operator(element.get("operator", "AND")),
        comment=element.get("comment"),
        entities=_parse_entities(element),
    )


def _section(root: tree.Element, local: str) -> list[tree.Element]:
    section = root.find(q(NS_DEFINITIONS, local))
    return list(section) if section is not None else []


def _unique(records: Iterable, kind: str) -> tuple:
    records = tuple(records)
    seen = set()
    for record in records:
        if record.id in seen:
            raise ValueError(f"Duplicate {kind} id {record.id}")
        seen.add(record.id)
    return records


def parse_definitions(root: tree.Element) -> DefinitionsDocument:
    """Read an ``oval_definitions`` element into a ``DefinitionsDocument``."""
    _expect_root(root, NS_DEFINITIONS, "oval_definitions")
    return DefinitionsDocument(
        generator=parse_generator(root.find(q(NS_DEFINITIONS, "generator"))),
        definitions=_unique((
            _parse_definition(e) for e in _section(root, "definitions")
            if e.tag == q(NS_DEFINITIONS, "definition")
        ), "definition"),
        tests=_unique((_parse_test(e) for e in _section(root, "tests")), "test"),
        objects=_unique((_parse_object(e) for e in _section(root, "objects")), "object"),
        states=_unique((_parse_state(e) for e in _section(root, "states")), "state"),
    )


def _build_criteria(parent: tree.Element, criteria: Criteria) -> None:
    element = tree.SubElement(parent, q(NS_DEFINITIONS, "criteria"), {
        "operator": criteria.operator.value,
    })
    if criteria.negate:
        element.set("negate", "true")
    if criteria.comment:
        element.set("comment", criteria.comment)
    for child in criteria.children:
        if isinstance(child, Criteria):
            _build_criteria(element, child)
        elif isinstance(child, Criterion):
            leaf = tree.SubElement(element, q(NS_DEFINITIONS, "criterion"), {"test_ref": child.test_ref})
            if child.negate:
                leaf.set("negate", "true")
            if child.comment:
                leaf.set("comment", child.comment)
        else:
            leaf = tree.SubElement(element, q(NS_DEFINITIONS, "extend_definition"), {
                "definition_ref": child.definition_ref,
            })
            if child.negate:
                leaf.set("negate", "true")
            if child.comment:
                leaf.set("comment", child.comment)


def _build_entities(parent: tree.Element, namespace: str, entities: Iterable[Entity]) -> None:
    for entity in entities:
        element = tree.SubElement(parent, q(namespace, entity.name))
        if entity.operation != "equals":
            element.set("operation", entity.operation)
        if entity.datatype != "string":
            element.set("datatype", entity.datatype)
        if entity.entity_check != "all":
            element.set("entity_check", entity.entity_check)
        if entity.nil:
            element.set(q(NS_XSI, "nil"), "true")
        element.text = entity.value


def build_definitions(document: DefinitionsDocument) -> tree.Element:
    """Serialize a ``DefinitionsDocument`` back into an ``oval_definitions`` element."""
    root = tree.Element(q(NS_DEFINITIONS, "oval_definitions"))
    _copy_generator(root, NS_DEFINITIONS, document.generator)

    definitions = tree.SubElement(root, q(NS_DEFINITIONS, "definitions"))
    for definition in document.definitions:
        element = tree.SubElement(definitions, q(NS_DEFINITIONS, "definition"), {
            "id": definition.id,
            "version": definition.version,
            "class": definition.definition_class,
        })
        if definition.deprecated:
            element.set("deprecated", "true")
        metadata = tree.SubElement(element, q(NS_DEFINITIONS, "metadata"))
        tree.SubElement(metadata, q(NS_DEFINITIONS, "title")).text = definition.title or ""
        for reference in definition.references:
            attrs = {"source": reference.source, "ref_id": reference.ref_id}
            if reference.ref_url:
                attrs["ref_url"] = reference.ref_url
            tree.SubElement(metadata, q(NS_DEFINITIONS, "reference"), attrs)
        tree.SubElement(metadata, q(NS_DEFINITIONS, "description")).text = definition.description or ""
        if definition.criteria is not None:
            _build_criteria(element, definition.criteria)

    if document.tests:
        tests = tree.SubElement(root, q(NS_DEFINITIONS, "tests"))
        for test in document.tests:
            namespace = f"{NS_DEFINITIONS}#{test.family}"
            element = tree.SubElement(tests, q(namespace, test.tag), {
                "id": test.id,
                "version": test.version,
                "check": test.check.value,
                "check_existence": test.check_existence.value,
                "comment": test.comment or test.id,
            })
            if test.state_operator is not Operator.AND:
                element.set("state_operator", test.state_operator.value)
            if test.object_ref:
                tree.SubElement(element, q(namespace, "object"), {"object_ref": test.object_ref})
            for state_ref in test.state_refs:
                tree.SubElement(element, q(namespace, "state"), {"state_ref": state_ref})

    if document.objects:
        objects = tree.SubElement(root, q(NS_DEFINITIONS, "objects"))
        for obj in document.objects:
            namespace = f"{NS_DEFINITIONS}#{obj.family}"
            element = tree.SubElement(objects, q(namespace, obj.tag), {"id": obj.id, "version": obj.version})
            if obj.comment:
                element.set("comment", obj.comment)
            _build_entities(element, namespace, obj.entities)

    if document.states:
        states = tree.SubElement(root, q(NS_DEFINITIONS, "states"))
        for state in document.states:
            namespace = f"{NS_DEFINITIONS}#{state.family}"
            element = tree.SubElement(states, q(namespace, state.tag), {"id": state.id, "version": state.version})
            if state.operator is not Operator.AND:
                element.set("operator", state.operator.value)
            if state.comment:
                element.set("comment", state.comment)
            _build_entities(element, namespace, state.entities)

    return root


# ---------------------------------------------------------------------------
# System characteristics
# ---------------------------------------------------------------------------

def _parse_sysinfo(element: tree.Element | None) -> SystemInfo:
    if element is None:
        raise ValueError("Document has no <system_info> element")
    interfaces = []
    container = element.find(q(NS_SYSCHAR, "interfaces"))
    if container is not None:
        for interface in container.findall(q(NS_SYSCHAR, "interface")):
            interfaces.append(NetworkInterface(
                name=_child_text(interface, NS_SYSCHAR, "interface_name") or "",
                ip_address=_child_text(interface, NS_SYSCHAR, "ip_address") or "",
                mac_address=_child_text(interface, NS_SYSCHAR, "mac_address") or "",
            ))
    return SystemInfo(
        os_name=_child_text(element, NS_SYSCHAR, "os_name") or "",
        os_version=_child_text(element, NS_SYSCHAR, "os_version") or "",
        architecture=_child_text(element, NS_SYSCHAR, "architecture") or "",
        primary_host_name=_child_text(element, NS_SYSCHAR, "primary_host_name") or "",
        interfaces=tuple(interfaces),
    )


def _messages(element: tree.Element, namespace: str) -> list[str]:
    return [(m.text or "").strip() for m in element.findall(q(namespace, "message"))]


def _parse_item(element: tree.Element) -> Item:
    namespace, local = split_tag(element.tag)
    entities = []
    messages = []
    for child in element:
        child_ns, child_local = split_tag(child.tag)
        if child_ns == NS_SYSCHAR and child_local == "message":
            messages.append((child.text or "").strip())
            continue
        entities.append(ItemEntity(
            name=child_local,
            value=child.text if child.text is not None else None,
            datatype=child.get("datatype", "string"),
            status=ItemStatus(child.get("status", "exists")),
        ))
    return Item(
        id=_require(element, "id"),
        family=family_of(namespace, NS_SYSCHAR),
        type=_strip_suffix(local, "_item"),
        status=ItemStatus(element.get("status", "exists")),
        entities=tuple(entities),
        messages=tuple(messages),
    )


def parse_syschar(
    root: tree.Element,
) -> tuple[Generator, SystemInfo, list[CollectedObject], list[Item]]:
    """Read an ``oval_system_characteristics`` element."""
    _expect_root(root, NS_SYSCHAR, "oval_system_characteristics")
    generator = parse_generator(root.find(q(NS_SYSCHAR, "generator")))
    sysinfo = _parse_sysinfo(root.find(q(NS_SYSCHAR, "system_info")))

    collected = []
    section = root.find(q(NS_SYSCHAR, "collected_objects"))
    if section is not None:
        for element in section.findall(q(NS_SYSCHAR, "object")):
            collected.append(CollectedObject(
                id=_require(element, "id"),
                version=element.get("version", "1"),
                flag=ObjectFlag(_require(element, "flag")),
                comment=element.get("comment"),
                item_refs=[_require(ref, "item_ref") for ref in element.findall(q(NS_SYSCHAR, "reference"))],
                messages=_messages(element, NS_SYSCHAR),
            ))

    items = []
    section = root.find(q(NS_SYSCHAR, "system_data"))
    if section is not None:
        items = [_parse_item(element) for element in section]

    return generator, sysinfo, collected, items


def build_syschar(
    sysinfo: SystemInfo,
    collected: Iterable[CollectedObject],
    items: Iterable[Item],
    schema_version: str,
) -> tree.Element:
    """Serialize system characteristics into an ``oval_system_characteristics`` element."""
    root = tree.Element(q(NS_SYSCHAR, "oval_system_characteristics"))
    build_generator(root, NS_SYSCHAR, schema_version)

    info = tree.SubElement(root, q(NS_SYSCHAR, "system_info"))
    tree.SubElement(info, q(NS_SYSCHAR, "os_name")).text = sysinfo.os_name
    tree.SubElement(info, q(NS_SYSCHAR, "os_version")).text = sysinfo.os_version
    tree.SubElement(info, q(NS_SYSCHAR, "architecture")).text = sysinfo.architecture
    tree.SubElement(info, q(NS_SYSCHAR, "primary_host_name")).text = sysinfo.primary_host_name
    interfaces = tree.SubElement(info, q(NS_SYSCHAR, "interfaces"))
    for interface in sysinfo.interfaces:
        element = tree.SubElement(interfaces, q(NS_SYSCHAR, "interface"))
        tree.SubElement(element, q(NS_SYSCHAR, "interface_name")).text = interface.name
        tree.SubElement(element, q(NS_SYSCHAR, "ip_address")).text = interface.ip_address
        tree.SubElement(element, q(NS_SYSCHAR, "mac_address")).text = interface.mac_address

    collected = list(collected)
    if collected:
        section = tree.SubElement(root, q(NS_SYSCHAR, "collected_objects"))
        for obj in collected:
            element = tree.SubElement(section, q(NS_SYSCHAR, "object"), {
                "id": obj.id,
                "version": obj.version,
                "flag": obj.flag.value,
            })
            if obj.comment:
                element.set("comment", obj.comment)
            for message in obj.messages:
                tree.SubElement(element, q(NS_SYSCHAR, "message"), {"level": "info"}).text = message
            for item_ref in obj.item_refs:
                tree.SubElement(element, q(NS_SYSCHAR, "reference"), {"item_ref": item_ref})

    items = list(items)
    if items:
        section = tree.SubElement(root, q(NS_SYSCHAR, "system_data"))
        for item in items:
            namespace = f"{NS_SYSCHAR}#{item.family}"
            element = tree.SubElement(section, q(namespace, item.tag), {"id": item.id})
            if item.status is not ItemStatus.EXISTS:
                element.set("status", item.status.value)
            for message in item.messages:
                tree.SubElement(element, q(NS_SYSCHAR, "message"), {"level": "info"}).text = message
            for entity in item.entities:
                child = tree.SubElement(element, q(namespace, entity.name))
                if entity.datatype != "string":
                    child.set("datatype", entity.datatype)
                if entity.status is not ItemStatus.EXISTS:
                    child.set("status", entity.status.value)
                child.text = entity.value

    return root


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

def _build_criteria_result(parent: tree.Element, criteria: CriteriaResult) -> None:
    element = tree.SubElement(parent, q(NS_RESULTS, "criteria"), {
        "operator": criteria.operator.value,
        "result": criteria.result.text,
    })
    if criteria.negate:
        element.set("negate", "true")
    for child in criteria.children:
        if isinstance(child, CriteriaResult):
            _build_criteria_result(element, child)
        elif isinstance(child, CriterionResult):
            leaf = tree.SubElement(element, q(NS_RESULTS, "criterion"), {
                "test_ref": child.test_ref,
                "result": child.result.text,
            })
            if child.negate:
                leaf.set("negate", "true")
        else:
            leaf = tree.SubElement(element, q(NS_RESULTS, "extend_definition"), {
                "definition_ref": child.definition_ref,
                "result": child.result.text,
            })
            if child.negate:
                leaf.set("negate", "true")


def _criteria_test_refs(criteria: CriteriaResult) -> Iterable[str]:
    for child in criteria.children:
        if isinstance(child, CriteriaResult):
            yield from _criteria_test_refs(child)
        elif isinstance(child, CriterionResult):
            yield child.test_ref


def build_results(
    definitions: DefinitionsDocument,
    systems: Iterable[tuple[ResultSystem, tree.Element]],
    directives: ResultDirectives,
    schema_version: str,
) -> tree.Element:
    """
    Serialize results into an ``oval_results`` element.

    Args:
        definitions: The evaluated definitions, embedded in the document
        systems: Pairs of result system and its serialized system characteristics
        directives: Which verdicts to report and at what detail
        schema_version: OVAL schema version written in the generator
    """
    root = tree.Element(q(NS_RESULTS, "oval_results"))
    build_generator(root, NS_RESULTS, schema_version)

    element = tree.SubElement(root, q(NS_RESULTS, "directives"))
    for verdict in Verdict:
        tree.SubElement(element, q(NS_RESULTS, verdict.directive_tag), {
            "reported": _bool_text(directives.is_reported(verdict)),
            "content": directives.content(verdict).value,
        })

    root.append(build_definitions(definitions))

    results = tree.SubElement(root, q(NS_RESULTS, "results"))
    for system, syschar in systems:
        system_element = tree.SubElement(results, q(NS_RESULTS, "system"))
        definitions_element = tree.SubElement(system_element, q(NS_RESULTS, "definitions"))
        test_refs: set[str] = set()

        for result in system.definitions.values():
            if not directives.is_reported(result.result):
                continue
            element = tree.SubElement(definitions_element, q(NS_RESULTS, "definition"), {
                "definition_id": result.definition_id,
                "version": result.version,
                "result": result.result.text,
            })
            if directives.content(result.result) is ContentLevel.FULL and result.criteria is not None:
                _build_criteria_result(element, result.criteria)
                test_refs.update(_criteria_test_refs(result.criteria))

        tests_element = tree.SubElement(system_element, q(NS_RESULTS, "tests"))
        for test_id, test in system.tests.items():
            if test_id not in test_refs:
                continue
            element = tree.SubElement(tests_element, q(NS_RESULTS, "test"), {
                "test_id": test.test_id,
                "version": test.version,
                "check": test.check.value,
                "check_existence": test.check_existence.value,
                "state_operator": test.state_operator.value,
                "result": test.result.text,
            })
            for message in test.messages:
                tree.SubElement(element, q(NS_RESULTS, "message"), {"level": "info"}).text = message
            for tested in test.tested_items:
                tree.SubElement(element, q(NS_RESULTS, "tested_item"), {
                    "item_id": tested.item_id,
                    "result": tested.result.text,
                })

        system_element.append(syschar)

    return root


def _parse_criteria_result(element: tree.Element) -> CriteriaResult:
    children: list[CriteriaResult | CriterionResult | ExtendDefinitionResult] = []
    for child in element:
        _, local = split_tag(child.tag)
        if local == "criteria":
            children.append(_parse_criteria_result(child))
        elif local == "criterion":
            children.append(CriterionResult(
                test_ref=_require(child, "test_ref"),
                negate=_bool(child.get("negate")),
                result=Verdict.from_text(_require(child, "result")),
            ))
        elif local == "extend_definition":
            children.append(ExtendDefinitionResult(
                definition_ref=_require(child, "definition_ref"),
                negate=_bool(child.get("negate")),
                result=Verdict.from_text(_require(child, "result")),
            ))
    return CriteriaResult(
        operator=Operator(element.get("operator", "AND")),
        negate=_bool(element.get("negate")),
        result=Verdict.from_text(_require(element, "result")),
        children=tuple(children),
    )


def _parse_directives(element: tree.Element | None) -> ResultDirectives:
    if element is None:
        raise ValueError("Document has no <directives> element")
    policies = {}
    for verdict in Verdict:
        child = element.find(q(NS_RESULTS, verdict.directive_tag))
        if child is None:
            policies[verdict] = DirectivePolicy(reported=False)
            continue
        policies[verdict] = DirectivePolicy(
            reported=_bool(child.get("reported"), default=True),
            content=ContentLevel(child.get("content", "full")),
        )
    return ResultDirectives(policies=policies)


def _parse_result_system(element: tree.Element) -> ResultSystem:
    system = ResultSystem()

    definitions = element.find(q(NS_RESULTS, "definitions"))
    if definitions is not None:
        for child in definitions.findall(q(NS_RESULTS, "definition")):
            criteria = child.find(q(NS_RESULTS, "criteria"))
            result = DefinitionResult(
                definition_id=_require(child, "definition_id"),
                version=child.get("version", "1"),
                result=Verdict.from_text(_require(child, "result")),
                criteria=_parse_criteria_result(criteria) if criteria is not None else None,
            )
            system.definitions[result.definition_id] = result

    tests = element.find(q(NS_RESULTS, "tests"))
    if tests is not None:
        for child in tests.findall(q(NS_RESULTS, "test")):
            result = TestResult(
                test_id=_require(child, "test_id"),
                version=child.get("version", "1"),
                check=CheckOperator(child.get("check", "all")),
                check_existence=ExistenceCheck(child.get("check_existence", "at_least_one_exists")),
                state_operator=Operator(child.get("state_operator", "AND")),
                result=Verdict.from_text(_require(child, "result")),
                tested_items=tuple(
                    TestedItem(item_id=_require(t, "item_id"), result=Verdict.from_text(_require(t, "result")))
                    for t in child.findall(q(NS_RESULTS, "tested_item"))
                ),
                messages=tuple(_messages(child, NS_RESULTS)),
            )
            system.tests[result.test_id] = result

    syschar = element.find(q(NS_SYSCHAR, "oval_system_characteristics"))
    if syschar is not None:
        system.sysinfo = _parse_sysinfo(syschar.find(q(NS_SYSCHAR, "system_info")))

    return system


def parse_results(root: tree.Element) -> ResultsDocument:
    """Read an ``oval_results`` element into a ``ResultsDocument``."""
    _expect_root(root, NS_RESULTS, "oval_results")
    embedded = root.find(q(NS_DEFINITIONS, "oval_definitions"))
    results = root.find(q(NS_RESULTS, "results"))
    if results is None:
        raise ValueError("Document has no <results> element")
    return ResultsDocument(
        generator=parse_generator(root.find(q(NS_RESULTS, "generator"))),
        directives=_parse_directives(root.find(q(NS_RESULTS, "directives"))),
        definitions=parse_definitions(embedded) if embedded is not None else None,
        systems=[_parse_result_system(e) for e in results.findall(q(NS_RESULTS, "system"))],
    )
