"""
Probe engines.

A probe engine inspects a system and returns sysinfo and collected items
for OVAL objects. The orchestration layer treats it as a black box; the
local engine shipped here covers a small set of object types.
"""

from __future__ import annotations

import logging
import os
import platform
import re
import socket
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from oval_runner.core.comparison import ComparisonError, compare_values
from oval_runner.errors import ProbeError
from oval_runner.models.definitions import Entity, ObjectDef
from oval_runner.models.syschar import Item, ItemEntity, NetworkInterface, ProbeResult, SystemInfo
from oval_runner.models.verdicts import ItemStatus, ObjectFlag

logger = logging.getLogger(__name__)


class BaseProbeEngine(ABC):
    """Abstract base class for probe engines."""

    @abstractmethod
    def query_sysinfo(self) -> SystemInfo:
        """
        Describe the probed system.

        Raises:
            ProbeError: The target cannot be inspected at all
        """
        pass

    @abstractmethod
    def collect(self, obj: ObjectDef) -> ProbeResult:
        """
        Collect the items of one object.

        Per-object problems are reported through the result flag; only a
        failure of the engine itself raises.

        Raises:
            ProbeError: The target cannot be inspected at all
        """
        pass

    def close(self) -> None:
        """Release engine resources."""


class _ObjectFault(Exception):
    """A single object cannot be collected; becomes an ``error`` flag."""


class LocalProbeEngine(BaseProbeEngine):
    """
    Probe engine inspecting the host it runs on.

    Supported object types:
        - ``independent:family``
        - ``independent:textfilecontent54``
        - ``independent:environmentvariable``
        - ``unix:file``
        - ``unix:uname``
    """

    def __init__(
        self,
        disabled_probes: list[str] | None = None,
        max_file_size: int = 10 * 1024 * 1024,
    ):
        """
        Initialize the engine.

        Args:
            disabled_probes: Object types (``family:type``) to report as not collected
            max_file_size: Maximum number of bytes read by text content probes
        """
        self.disabled_probes = set(disabled_probes or [])
        self.max_file_size = max_file_size
        self._handlers: dict[str, Callable[[ObjectDef], ProbeResult]] = {
            "independent:family": self._probe_family,
            "independent:textfilecontent54": self._probe_textfilecontent54,
            "independent:environmentvariable": self._probe_environmentvariable,
            "unix:file": self._probe_file,
            "unix:uname": self._probe_uname,
        }
        unknown = self.disabled_probes.difference(self.supported_types)
        if unknown:
            logger.warning(f"Ignoring unknown disabled probes: {', '.join(sorted(unknown))}")

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._handlers)

    def query_sysinfo(self) -> SystemInfo:
        try:
            hostname = socket.gethostname()
        except OSError as e:
            raise ProbeError("Failed to query system info", str(e)) from e

        interfaces = []
        try:
            for _, name in socket.if_nameindex():
                interfaces.append(NetworkInterface(name=name))
        except (OSError, AttributeError):
            logger.debug("Network interfaces not available")

        return SystemInfo(
            os_name=platform.system() or "unknown",
            os_version=platform.release() or "unknown",
            architecture=platform.machine() or "unknown",
            primary_host_name=hostname,
            interfaces=tuple(interfaces),
        )

    def collect(self, obj: ObjectDef) -> ProbeResult:
        key = f"{obj.family}:{obj.type}"
        if key in self.disabled_probes:
            return ProbeResult(flag=ObjectFlag.NOT_COLLECTED, messages=[f"Probe {key} is disabled"])

        handler = self._handlers.get(key)
        if handler is None:
            logger.debug(f"No probe for {key} ({obj.id})")
            return ProbeResult(flag=ObjectFlag.NOT_COLLECTED, messages=[f"Object type {key} is not supported"])

        try:
            return handler(obj)
        except _ObjectFault as e:
            logger.warning(f"Probe {key} failed for {obj.id}: {e}")
            return ProbeResult(flag=ObjectFlag.ERROR, messages=[str(e)])

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _result(items: list[Item]) -> ProbeResult:
        if not items:
            return ProbeResult(flag=ObjectFlag.DOES_NOT_EXIST)
        return ProbeResult(flag=ObjectFlag.COMPLETE, items=items)

    @staticmethod
    def _required(obj: ObjectDef, name: str) -> Entity:
        entity = obj.entity(name)
        if entity is None or entity.value is None:
            raise _ObjectFault(f"{obj.id}: entity {name!r} has no value")
        return entity

    @staticmethod
    def _matches(entity: Entity, candidate: str) -> bool:
        try:
            return compare_values(candidate, entity.value, entity.operation, entity.datatype)
        except ComparisonError as e:
            raise _ObjectFault(str(e)) from e

    def _resolve_paths(self, obj: ObjectDef) -> list[Path]:
        """Expand ``filepath`` or ``path`` + ``filename`` entities into paths."""
        filepath = obj.entity("filepath")
        if filepath is not None:
            if filepath.operation != "equals":
                raise _ObjectFault(f"{obj.id}: filepath operation {filepath.operation!r} is not supported")
            return [Path(self._required(obj, "filepath").value)]

        path = self._required(obj, "path")
        if path.operation != "equals":
            raise _ObjectFault(f"{obj.id}: path operation {path.operation!r} is not supported")
        directory = Path(path.value)

        filename = obj.entity("filename")
        if filename is None or (filename.value is None and filename.nil):
            return [directory]
        if filename.value is None:
            raise _ObjectFault(f"{obj.id}: entity 'filename' has no value")
        if filename.operation == "equals":
            return [directory / filename.value]
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if self._matches(filename, p.name))

    # -- probes -----------------------------------------------------------

    def _probe_family(self, obj: ObjectDef) -> ProbeResult:
        system = platform.system()
        family = {"Windows": "windows", "Darwin": "macos"}.get(system, "unix")
        return self._result([Item(
            id="",
            family="independent",
            type="family",
            entities=(ItemEntity(name="family", value=family),),
        )])

    def _probe_uname(self, obj: ObjectDef) -> ProbeResult:
        uname = platform.uname()
        return self._result([Item(
            id="",
            family="unix",
            type="uname",
            entities=(
                ItemEntity(name="machine_class", value=uname.machine),
                ItemEntity(name="node_name", value=uname.node),
                ItemEntity(name="os_name", value=uname.system),
                ItemEntity(name="os_release", value=uname.release),
                ItemEntity(name="os_version", value=uname.version),
                ItemEntity(name="processor_type", value=uname.processor or uname.machine),
            ),
        )])

    def _probe_environmentvariable(self, obj: ObjectDef) -> ProbeResult:
        name = self._required(obj, "name")
        items = []
        for key in sorted(os.environ):
            if self._matches(name, key):
                items.append(Item(
                    id="",
                    family="independent",
                    type="environmentvariable",
                    entities=(
                        ItemEntity(name="name", value=key),
                        ItemEntity(name="value", value=os.environ[key]),
                    ),
                ))
        return self._result(items)

    def _probe_file(self, obj: ObjectDef) -> ProbeResult:
        items = []
        for path in self._resolve_paths(obj):
            try:
                info = path.lstat()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise _ObjectFault(f"{path}: {e}") from e
            items.append(self._file_item(path, info))
        return self._result(items)

    @staticmethod
    def _file_item(path: Path, info: os.stat_result) -> Item:
        mode = info.st_mode
        if stat.S_ISDIR(mode):
            kind = "directory"
        elif stat.S_ISLNK(mode):
            kind = "symbolic link"
        elif stat.S_ISREG(mode):
            kind = "regular"
        else:
            kind = "special"

        def flag(name: str, bit: int) -> ItemEntity:
            return ItemEntity(name=name, value="true" if mode & bit else "false", datatype="boolean")

        return Item(
            id="",
            family="unix",
            type="file",
            entities=(
                ItemEntity(name="filepath", value=str(path)),
                ItemEntity(name="path", value=str(path.parent)),
                ItemEntity(name="filename", value=path.name),
                ItemEntity(name="type", value=kind),
                ItemEntity(name="user_id", value=str(info.st_uid), datatype="int"),
                ItemEntity(name="group_id", value=str(info.st_gid), datatype="int"),
                ItemEntity(name="a_time", value=str(int(info.st_atime)), datatype="int"),
                ItemEntity(name="c_time", value=str(int(info.st_ctime)), datatype="int"),
                ItemEntity(name="m_time", value=str(int(info.st_mtime)), datatype="int"),
                ItemEntity(name="size", value=str(info.st_size), datatype="int"),
                flag("suid", stat.S_ISUID),
                flag("sgid", stat.S_ISGID),
                flag("sticky", stat.S_ISVTX),
                flag("uread", stat.S_IRUSR),
                flag("uwrite", stat.S_IWUSR),
                flag("uexec", stat.S_IXUSR),
                flag("gread", stat.S_IRGRP),
                flag("gwrite", stat.S_IWGRP),
                flag("gexec", stat.S_IXGRP),
                flag("oread", stat.S_IROTH),
                flag("owrite", stat.S_IWOTH),
                flag("oexec", stat.S_IXOTH),
            ),
        )

    def _probe_textfilecontent54(self, obj: ObjectDef) -> ProbeResult:
        pattern = self._required(obj, "pattern")
        instance = obj.entity("instance") or Entity(
            name="instance", value="1", operation="greater than or equal", datatype="int"
        )
        try:
            regex = re.compile(pattern.value, re.MULTILINE)
        except re.error as e:
            raise _ObjectFault(f"{obj.id}: invalid pattern: {e}") from e

        items = []
        for path in self._resolve_paths(obj):
            if not path.is_file():
                continue
            try:
                with open(path, "rb") as f:
                    content = f.read(self.max_file_size).decode("utf-8", errors="replace")
            except OSError as e:
                raise _ObjectFault(f"{path}: {e}") from e

            for number, match in enumerate(regex.finditer(content), 1):
                if not self._matches(instance, str(number)):
                    continue
                entities = [
                    ItemEntity(name="filepath", value=str(path)),
                    ItemEntity(name="path", value=str(path.parent)),
                    ItemEntity(name="filename", value=path.name),
                    ItemEntity(name="pattern", value=pattern.value),
                    ItemEntity(name="instance", value=str(number), datatype="int"),
                    ItemEntity(name="text", value=match.group(0)),
                ]
                entities.extend(
                    ItemEntity(name="subexpression", value=group)
                    for group in match.groups() if group is not None
                )
                items.append(Item(
                    id="",
                    family="independent",
                    type="textfilecontent",
                    entities=tuple(entities),
                ))
        return self._result(items)


def create_probe_engine(
    engine: str = "local",
    disabled_probes: list[str] | None = None,
    max_file_size: int = 10 * 1024 * 1024,
) -> BaseProbeEngine:
    """Create a probe engine by name."""
    name = engine.lower()
    if name == "local":
        return LocalProbeEngine(disabled_probes=disabled_probes, max_file_size=max_file_size)
    raise ValueError(f"Unknown probe engine: {engine}")
