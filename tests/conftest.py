"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path

from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.resources import ManagedResource
from oval_runner.core.results_model import ResultsModel
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.errors import ProbeError
from oval_runner.models.results import ResultDirectives
from oval_runner.models.syschar import Item, ItemEntity, ProbeResult, SystemInfo
from oval_runner.models.verdicts import ObjectFlag
from oval_runner.probes.engine import BaseProbeEngine


PRESENT_VARIABLE = "OVAL_FIXTURE_PRESENT"
ABSENT_VARIABLE = "OVAL_FIXTURE_ABSENT"

DEFINITIONS_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<oval_definitions xmlns="http://oval.mitre.org/XMLSchema/oval-definitions-5"
    xmlns:oval="http://oval.mitre.org/XMLSchema/oval-common-5"
    xmlns:ind-def="http://oval.mitre.org/XMLSchema/oval-definitions-5#independent">
  <generator>
    <oval:product_name>fixture</oval:product_name>
    <oval:schema_version>5.11.2</oval:schema_version>
    <oval:timestamp>2024-01-01T00:00:00</oval:timestamp>
  </generator>
  <definitions>
    <definition id="oval:test:def:1" version="1" class="compliance">
      <metadata>
        <title>Variable is set</title>
        <description>The fixture variable exists.</description>
      </metadata>
      <criteria>
        <criterion test_ref="oval:test:tst:1" comment="variable exists"/>
      </criteria>
    </definition>
    <definition id="oval:test:def:2" version="1" class="compliance">
      <metadata>
        <title>Variable has the expected value</title>
      </metadata>
      <criteria>
        <criterion test_ref="oval:test:tst:2"/>
      </criteria>
    </definition>
    <definition id="oval:test:def:3" version="2" class="inventory">
      <metadata>
        <title>Set, and the other variable is absent</title>
      </metadata>
      <criteria operator="AND">
        <extend_definition definition_ref="oval:test:def:1"/>
        <criterion test_ref="oval:test:tst:3" negate="true"/>
      </criteria>
    </definition>
  </definitions>
  <tests>
    <ind-def:environmentvariable_test id="oval:test:tst:1" version="1" check="all"
        check_existence="at_least_one_exists" comment="variable exists">
      <ind-def:object object_ref="oval:test:obj:1"/>
    </ind-def:environmentvariable_test>
    <ind-def:environmentvariable_test id="oval:test:tst:2" version="1" check="all" comment="variable value">
      <ind-def:object object_ref="oval:test:obj:1"/>
      <ind-def:state state_ref="oval:test:ste:1"/>
    </ind-def:environmentvariable_test>
    <ind-def:environmentvariable_test id="oval:test:tst:3" version="1" check="all"
        check_existence="at_least_one_exists" comment="other variable exists">
      <ind-def:object object_ref="oval:test:obj:2"/>
    </ind-def:environmentvariable_test>
  </tests>
  <objects>
    <ind-def:environmentvariable_object id="oval:test:obj:1" version="1">
      <ind-def:name>{PRESENT_VARIABLE}</ind-def:name>
    </ind-def:environmentvariable_object>
    <ind-def:environmentvariable_object id="oval:test:obj:2" version="1">
      <ind-def:name>{ABSENT_VARIABLE}</ind-def:name>
    </ind-def:environmentvariable_object>
  </objects>
  <states>
    <ind-def:environmentvariable_state id="oval:test:ste:1" version="1">
      <ind-def:value>expected</ind-def:value>
    </ind-def:environmentvariable_state>
  </states>
</oval_definitions>
"""

SYSCHAR_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<oval_system_characteristics xmlns="http://oval.mitre.org/XMLSchema/oval-system-characteristics-5"
    xmlns:oval="http://oval.mitre.org/XMLSchema/oval-common-5"
    xmlns:ind-sys="http://oval.mitre.org/XMLSchema/oval-system-characteristics-5#independent">
  <generator>
    <oval:product_name>fixture</oval:product_name>
    <oval:schema_version>5.11.2</oval:schema_version>
  </generator>
  <system_info>
    <os_name>Linux</os_name>
    <os_version>6.1.0</os_version>
    <architecture>x86_64</architecture>
    <primary_host_name>testhost</primary_host_name>
    <interfaces/>
  </system_info>
  <collected_objects>
    <object id="oval:test:obj:1" version="1" flag="complete">
      <reference item_ref="1"/>
    </object>
    <object id="oval:test:obj:2" version="1" flag="does not exist"/>
  </collected_objects>
  <system_data>
    <ind-sys:environmentvariable_item id="1">
      <ind-sys:name>{PRESENT_VARIABLE}</ind-sys:name>
      <ind-sys:value>other</ind-sys:value>
    </ind-sys:environmentvariable_item>
  </system_data>
</oval_system_characteristics>
"""

SYSINFO = SystemInfo(
    os_name="Linux",
    os_version="6.1.0",
    architecture="x86_64",
    primary_host_name="testhost",
)


def env_item(name: str, value: str) -> Item:
    """Build an environment variable item as a probe would return it."""
    return Item(
        id="",
        family="independent",
        type="environmentvariable",
        entities=(
            ItemEntity(name="name", value=name),
            ItemEntity(name="value", value=value),
        ),
    )


class FakeProbeEngine(BaseProbeEngine):
    """Probe engine answering from a fixed table of object results."""

    def __init__(self, results=None, sysinfo=SYSINFO):
        self.results = dict(results or {})
        self.sysinfo = sysinfo
        self.collected = []
        self.closed = False

    def query_sysinfo(self):
        return self.sysinfo

    def collect(self, obj):
        self.collected.append(obj.id)
        return self.results.get(obj.id, ProbeResult(flag=ObjectFlag.DOES_NOT_EXIST))

    def close(self):
        self.closed = True


class UnreachableProbeEngine(FakeProbeEngine):
    """Probe engine whose target cannot be reached."""

    def query_sysinfo(self):
        raise ProbeError("Failed to query system info", "probe target unreachable")


class BrokenObjectProbeEngine(FakeProbeEngine):
    """Probe engine that fails on object collection."""

    def collect(self, obj):
        raise ProbeError(f"Failed to collect {obj.id}", "probe crashed")


@pytest.fixture
def definitions_file(tmp_path):
    """Sample OVAL definitions document."""
    path = tmp_path / "defs.xml"
    path.write_text(DEFINITIONS_XML)
    return path


@pytest.fixture
def syschar_file(tmp_path):
    """Sample system characteristics matching ``definitions_file``."""
    path = tmp_path / "syschar.xml"
    path.write_text(SYSCHAR_XML)
    return path


@pytest.fixture
def results_file(definitions_file, syschar_file, tmp_path):
    """Results exported from the sample definitions and system characteristics."""
    path = tmp_path / "results.xml"
    with DefinitionModel.import_file(definitions_file) as definitions:
        with SystemCharacteristicsModel(definitions) as syschar:
            syschar.import_file(syschar_file)
            with ResultsModel(definitions, [syschar]) as results:
                results.evaluate()
                results.export(ResultDirectives.full(), path)
    return path


@pytest.fixture
def fake_engine():
    """Engine where the fixture variable is set to the expected value."""
    return FakeProbeEngine({
        "oval:test:obj:1": ProbeResult(items=[env_item(PRESENT_VARIABLE, "expected")]),
    })


@pytest.fixture
def failing_value_engine():
    """Engine where the fixture variable has an unexpected value."""
    return FakeProbeEngine({
        "oval:test:obj:1": ProbeResult(items=[env_item(PRESENT_VARIABLE, "other")]),
    })


@pytest.fixture
def fixture_environment(monkeypatch):
    """Environment for evaluating the sample definitions with the local engine."""
    monkeypatch.setenv(PRESENT_VARIABLE, "expected")
    monkeypatch.delenv(ABSENT_VARIABLE, raising=False)


@pytest.fixture
def resource_tracker(monkeypatch):
    """
    Record every model and session created during a test.

    Tests assert that everything recorded is closed once a workflow returns.
    """
    created = []
    original_init = ManagedResource.__init__

    def tracking_init(self, *args, **kwargs):
        original_init(self, *args, **kwargs)
        created.append(self)

    monkeypatch.setattr(ManagedResource, "__init__", tracking_init)
    return created


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that run whole workflows against the local system"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that would download content (mocked in this suite)"
    )
