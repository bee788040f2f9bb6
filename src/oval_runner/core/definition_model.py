"""
Definition Model.

The in-memory catalogue of definitions, tests, objects and states read
from one OVAL definitions document. Immutable once imported.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping
from xml.etree.ElementTree import ParseError

from pydantic import ValidationError

from oval_runner.core import xmlio
from oval_runner.core.resources import ManagedResource
from oval_runner.errors import DocumentImportError
from oval_runner.models.definitions import (
    Definition,
    DefinitionsDocument,
    Generator,
    ObjectDef,
    StateDef,
    TestDef,
)

logger = logging.getLogger(__name__)


class DefinitionModel(ManagedResource):
    """
    Immutable view over an imported definitions document.

    Example:
        ```python
        with DefinitionModel.import_file("defs.xml") as model:
            for definition in model.iter_definitions():
                print(definition.id, definition.title)
        ```
    """

    def __init__(self, document: DefinitionsDocument, source: str | None = None):
        super().__init__()
        self.source = source
        self._document = document
        self._definitions = MappingProxyType({d.id: d for d in document.definitions})
        self._tests = MappingProxyType({t.id: t for t in document.tests})
        self._objects = MappingProxyType({o.id: o for o in document.objects})
        self._states = MappingProxyType({s.id: s for s in document.states})

    @classmethod
    def import_file(cls, path: str | Path) -> "DefinitionModel":
        """
        Import a definitions document.

        Raises:
            DocumentImportError: The file cannot be read or is not OVAL definitions
        """
        logger.info(f"Importing definitions: {path}")
        try:
            root = xmlio.read_document(path)
            document = xmlio.parse_definitions(root)
        except (OSError, ParseError, ValueError, ValidationError) as e:
            raise DocumentImportError(path, str(e)) from e

        model = cls(document, source=str(path))
        logger.debug(
            f"Imported {len(model._definitions)} definitions, {len(model._tests)} tests, "
            f"{len(model._objects)} objects, {len(model._states)} states"
        )
        return model

    def __repr__(self) -> str:
        return f"DefinitionModel(source={self.source!r})"

    @property
    def document(self) -> DefinitionsDocument:
        self._ensure_open()
        return self._document

    @property
    def generator(self) -> Generator:
        self._ensure_open()
        return self._document.generator

    @property
    def definitions(self) -> Mapping[str, Definition]:
        self._ensure_open()
        return self._definitions

    @property
    def tests(self) -> Mapping[str, TestDef]:
        self._ensure_open()
        return self._tests

    @property
    def objects(self) -> Mapping[str, ObjectDef]:
        self._ensure_open()
        return self._objects

    @property
    def states(self) -> Mapping[str, StateDef]:
        self._ensure_open()
        return self._states

    def iter_definitions(self) -> Iterator[Definition]:
        """Definitions in document order."""
        self._ensure_open()
        return iter(self._document.definitions)

    def get_definition(self, definition_id: str) -> Definition | None:
        return self.definitions.get(definition_id)

    def objects_for_definition(self, definition_id: str) -> list[str]:
        """
        Object ids needed to evaluate a definition, following extended
        definitions. Unknown references are skipped.
        """
        self._ensure_open()
        seen_definitions: set[str] = set()
        object_ids: list[str] = []
        pending = [definition_id]

        while pending:
            current = pending.pop()
            if current in seen_definitions:
                continue
            seen_definitions.add(current)
            definition = self._definitions.get(current)
            if definition is None:
                continue
            for test_ref in definition.test_refs():
                test = self._tests.get(test_ref)
                if test is not None and test.object_ref and test.object_ref not in object_ids:
                    object_ids.append(test.object_ref)
            pending.extend(definition.definition_refs())

        return object_ids
