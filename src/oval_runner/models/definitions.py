"""
Data models for OVAL definitions content.

These records are produced by the definitions importer and never change
afterwards: every model here is frozen.
"""

from __future__ import annotations

from typing import Iterator, Union

from pydantic import BaseModel, ConfigDict, Field

from oval_runner.models.verdicts import CheckOperator, ExistenceCheck, Operator


class FrozenModel(BaseModel):
    """Base for immutable OVAL records."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Generator(FrozenModel):
    """The ``generator`` block shared by all OVAL documents."""

    product_name: str | None = None
    product_version: str | None = None
    schema_version: str = "5.11.2"
    timestamp: str | None = None


class Entity(FrozenModel):
    """A named value of an object, state or item."""

    name: str
    value: str | None = None
    operation: str = "equals"
    datatype: str = "string"
    entity_check: str = "all"
    nil: bool = False


class EntityContainer(FrozenModel):
    """Shared accessors for records that carry ordered entities."""

    entities: tuple[Entity, ...] = ()

    def entity(self, name: str) -> Entity | None:
        """Return the first entity with the given name."""
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def value(self, name: str, default: str | None = None) -> str | None:
        """Return the value of the named entity, or ``default``."""
        entity = self.entity(name)
        if entity is None or entity.value is None:
            return default
        return entity.value


class ObjectDef(EntityContainer):
    """An OVAL object: what the probes have to collect."""

    id: str
    version: str = "1"
    family: str = "independent"
    type: str
    comment: str | None = None

    @property
    def tag(self) -> str:
        return f"{self.type}_object"


class StateDef(EntityContainer):
    """An OVAL state: the expected values of collected items."""

    id: str
    version: str = "1"
    family: str = "independent"
    type: str
    operator: Operator = Operator.AND
    comment: str | None = None

    @property
    def tag(self) -> str:
        return f"{self.type}_state"


class TestDef(FrozenModel):
    """An OVAL test binding one object to zero or more states."""

    __test__ = False

    id: str
    version: str = "1"
    family: str = "independent"
    type: str
    check: CheckOperator = CheckOperator.ALL
    check_existence: ExistenceCheck = ExistenceCheck.AT_LEAST_ONE_EXISTS
    state_operator: Operator = Operator.AND
    object_ref: str | None = None
    state_refs: tuple[str, ...] = ()
    comment: str | None = None

    @property
    def tag(self) -> str:
        return f"{self.type}_test"


class Criterion(FrozenModel):
    """Leaf of a criteria tree pointing at a test."""

    test_ref: str
    negate: bool = False
    comment: str | None = None


class ExtendDefinition(FrozenModel):
    """Leaf of a criteria tree pointing at another definition."""

    definition_ref: str
    negate: bool = False
    comment: str | None = None


class Criteria(FrozenModel):
    """Inner node of a criteria tree."""

    operator: Operator = Operator.AND
    negate: bool = False
    comment: str | None = None
    children: tuple[Union[Criteria, Criterion, ExtendDefinition], ...] = ()

    def iter_test_refs(self) -> Iterator[str]:
        """Yield every test id referenced below this node."""
        for child in self.children:
            if isinstance(child, Criterion):
                yield child.test_ref
            elif isinstance(child, Criteria):
                yield from child.iter_test_refs()

    def iter_definition_refs(self) -> Iterator[str]:
        """Yield every extended definition id referenced below this node."""
        for child in self.children:
            if isinstance(child, ExtendDefinition):
                yield child.definition_ref
            elif isinstance(child, Criteria):
                yield from child.iter_definition_refs()


Criteria.model_rebuild()


class Reference(FrozenModel):
    """External reference (CVE, CCE, ...) attached to a definition."""

    source: str
    ref_id: str
    ref_url: str | None = None


class Definition(FrozenModel):
    """A single OVAL definition."""

    id: str
    version: str = "1"
    definition_class: str = Field(default="compliance", alias="class")
    title: str | None = None
    description: str | None = None
    references: tuple[Reference, ...] = ()
    deprecated: bool = False
    criteria: Criteria | None = None

    def test_refs(self) -> list[str]:
        """Tests referenced directly by this definition's criteria."""
        return list(self.criteria.iter_test_refs()) if self.criteria else []

    def definition_refs(self) -> list[str]:
        """Definitions extended directly by this definition's criteria."""
        return list(self.criteria.iter_definition_refs()) if self.criteria else []


class DefinitionsDocument(FrozenModel):
    """Everything read from an ``oval_definitions`` document."""

    generator: Generator = Field(default_factory=Generator)
    definitions: tuple[Definition, ...] = ()
    tests: tuple[TestDef, ...] = ()
    objects: tuple[ObjectDef, ...] = ()
    states: tuple[StateDef, ...] = ()
