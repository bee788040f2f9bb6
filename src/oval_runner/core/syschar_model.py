"""
System-Characteristics Model.

Holds the captured state of one system: sysinfo, the collection outcome
of each object and the collected items. It is either populated by a
probe session or imported whole from a previous export.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO
from xml.etree.ElementTree import Element, ParseError

from pydantic import ValidationError

from oval_runner.core import xmlio
from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.resources import ManagedResource
from oval_runner.errors import DocumentExportError, DocumentImportError, IncompleteModelError
from oval_runner.models.definitions import ObjectDef
from oval_runner.models.syschar import CollectedObject, Item, ProbeResult, SystemInfo

logger = logging.getLogger(__name__)


class SystemCharacteristicsModel(ManagedResource):
    """
    Collected or loaded system data bound to one Definition Model.

    Example:
        ```python
        with SystemCharacteristicsModel(definition_model) as syschar:
            syschar.import_file("syschar.xml")
            print(syschar.sysinfo.primary_host_name)
        ```
    """

    def __init__(self, definition_model: DefinitionModel):
        super().__init__()
        self.definition_model = definition_model
        self._sysinfo: SystemInfo | None = None
        self._collected: dict[str, CollectedObject] = {}
        self._items: dict[str, Item] = {}
        self._item_keys: dict[tuple, str] = {}
        self._next_item_id = 1

    def __repr__(self) -> str:
        return f"SystemCharacteristicsModel(definitions={self.definition_model.source!r})"

    def _release(self) -> None:
        self._collected.clear()
        self._items.clear()
        self._item_keys.clear()

    @property
    def sysinfo(self) -> SystemInfo | None:
        self._ensure_open()
        return self._sysinfo

    def set_sysinfo(self, sysinfo: SystemInfo) -> None:
        self._ensure_open()
        self._sysinfo = sysinfo

    @property
    def is_complete(self) -> bool:
        """Whether the model carries everything needed for export."""
        return self._sysinfo is not None

    @property
    def collected_objects(self) -> dict[str, CollectedObject]:
        self._ensure_open()
        return dict(self._collected)

    @property
    def items(self) -> dict[str, Item]:
        self._ensure_open()
        return dict(self._items)

    def get_collected_object(self, object_id: str) -> CollectedObject | None:
        self._ensure_open()
        return self._collected.get(object_id)

    def get_items(self, collected: CollectedObject) -> list[Item]:
        """Resolve the item references of a collected object."""
        self._ensure_open()
        return [self._items[ref] for ref in collected.item_refs if ref in self._items]

    def add_probe_result(self, obj: ObjectDef, result: ProbeResult) -> CollectedObject:
        """
        Record what the probe engine returned for an object.

        Identical items collected for different objects are stored once and
        referenced from each object.
        """
        self._ensure_open()
        item_refs = []
        for item in result.items:
            key = (item.family, item.type, item.status, item.entities)
            item_id = self._item_keys.get(key)
            if item_id is None:
                item_id = str(self._next_item_id)
                self._next_item_id += 1
                self._items[item_id] = item.model_copy(update={"id": item_id})
                self._item_keys[key] = item_id
            item_refs.append(item_id)

        collected = CollectedObject(
            id=obj.id,
            version=obj.version,
            flag=result.flag,
            item_refs=item_refs,
            messages=list(result.messages),
            comment=obj.comment,
        )
        self._collected[obj.id] = collected
        return collected

    def import_file(self, path: str | Path) -> None:
        """
        Load system characteristics exported by a previous collection.

        Raises:
            DocumentImportError: The document cannot be parsed, or references
                objects or items that do not exist
        """
        self._ensure_open()
        logger.info(f"Importing system characteristics: {path}")
        try:
            root = xmlio.read_document(path)
            _, sysinfo, collected, items = xmlio.parse_syschar(root)
        except (OSError, ParseError, ValueError, ValidationError) as e:
            raise DocumentImportError(path, str(e)) from e

        known_objects = self.definition_model.objects
        item_ids = {item.id for item in items}
        for obj in collected:
            if obj.id not in known_objects:
                raise DocumentImportError(path, f"collected object {obj.id} is not defined in {self.definition_model.source}")
            missing = [ref for ref in obj.item_refs if ref not in item_ids]
            if missing:
                raise DocumentImportError(path, f"collected object {obj.id} references unknown items {', '.join(missing)}")

        self._sysinfo = sysinfo
        self._collected = {obj.id: obj for obj in collected}
        self._items = {item.id: item for item in items}
        numeric = [int(item_id) for item_id in self._items if item_id.isdigit()]
        self._next_item_id = max(numeric, default=0) + 1
        logger.debug(f"Imported {len(self._collected)} collected objects, {len(self._items)} items")

    def to_element(self, schema_version: str | None = None) -> Element:
        """Serialize the model; sysinfo must have been set."""
        self._ensure_open()
        if not self.is_complete:
            raise IncompleteModelError("System characteristics have no system info")
        return xmlio.build_syschar(
            self._sysinfo,
            self._collected.values(),
            self._items.values(),
            schema_version or self.definition_model.generator.schema_version,
        )

    def export(self, destination: str | Path | IO[str], schema_version: str | None = None) -> None:
        """
        Write the model as an OVAL system characteristics document.

        Args:
            destination: File path, ``"-"`` for standard output, or a text stream
            schema_version: Schema version for the generator block
        """
        root = self.to_element(schema_version)
        try:
            xmlio.write_document(root, destination)
        except OSError as e:
            raise DocumentExportError(f"Failed to export system characteristics to {destination}", str(e)) from e
