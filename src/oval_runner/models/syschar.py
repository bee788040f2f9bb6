"""
Data models for OVAL system characteristics.

System characteristics are the captured state of one host: the sysinfo
block, the collection outcome of every object and the collected items.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from oval_runner.models.verdicts import ItemStatus, ObjectFlag


class NetworkInterface(BaseModel):
    """One network interface reported in ``system_info``."""

    model_config = ConfigDict(frozen=True)

    name: str
    ip_address: str = ""
    mac_address: str = ""


class SystemInfo(BaseModel):
    """The ``system_info`` block of a system characteristics document."""

    model_config = ConfigDict(frozen=True)

    os_name: str
    os_version: str
    architecture: str
    primary_host_name: str
    interfaces: tuple[NetworkInterface, ...] = ()


class ItemEntity(BaseModel):
    """A single collected value of an item."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str | None = None
    datatype: str = "string"
    status: ItemStatus = ItemStatus.EXISTS


class Item(BaseModel):
    """A collected item (file, text line, environment variable, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    family: str = "independent"
    type: str
    status: ItemStatus = ItemStatus.EXISTS
    entities: tuple[ItemEntity, ...] = ()
    messages: tuple[str, ...] = ()

    @property
    def tag(self) -> str:
        return f"{self.type}_item"

    def values(self, name: str) -> list[ItemEntity]:
        """All entities with the given name, in document order."""
        return [entity for entity in self.entities if entity.name == name]


class ProbeResult(BaseModel):
    """What a probe returns for one object, before item ids are assigned."""

    flag: ObjectFlag = ObjectFlag.COMPLETE
    items: list[Item] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)


class CollectedObject(BaseModel):
    """Collection outcome of one object, referencing its items by id."""

    id: str
    version: str = "1"
    flag: ObjectFlag
    item_refs: list[str] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    comment: str | None = None
