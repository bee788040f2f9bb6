"""
Tests for the document models and the OVAL XML reader/writer.
"""

import io

import pytest

from oval_runner.core import xmlio
from oval_runner.core.definition_model import DefinitionModel
from oval_runner.core.results_model import ResultsModel, load_results
from oval_runner.core.syschar_model import SystemCharacteristicsModel
from oval_runner.errors import DocumentImportError, IncompleteModelError, ModelReleasedError
from oval_runner.models import ContentLevel, ObjectDef, ObjectFlag, ProbeResult, ResultDirectives, Verdict

from conftest import PRESENT_VARIABLE, SYSINFO, env_item


class TestDefinitionModel:
    """Tests for importing definitions."""

    def test_import(self, definitions_file):
        """All sections are read with their family and type."""
        with DefinitionModel.import_file(definitions_file) as model:
            assert [d.id for d in model.iter_definitions()] == [
                "oval:test:def:1",
                "oval:test:def:2",
                "oval:test:def:3",
            ]
            test = model.tests["oval:test:tst:2"]
            assert test.family == "independent"
            assert test.type == "environmentvariable"
            assert test.state_refs == ("oval:test:ste:1",)
            assert model.objects["oval:test:obj:1"].value("name") == PRESENT_VARIABLE
            assert model.generator.schema_version == "5.11.2"
            assert model.get_definition("oval:test:def:1").title == "Variable is set"

    def test_read_only(self, definitions_file):
        """The catalogue cannot be modified after import."""
        with DefinitionModel.import_file(definitions_file) as model:
            with pytest.raises(TypeError):
                model.definitions["oval:test:def:9"] = None

    def test_objects_follow_extended_definitions(self, definitions_file):
        with DefinitionModel.import_file(definitions_file) as model:
            assert set(model.objects_for_definition("oval:test:def:3")) == {
                "oval:test:obj:1",
                "oval:test:obj:2",
            }
            assert model.objects_for_definition("oval:test:def:404") == []

    def test_import_missing_file(self, tmp_path):
        with pytest.raises(DocumentImportError) as exc_info:
            DefinitionModel.import_file(tmp_path / "missing.xml")

        assert exc_info.value.path.endswith("missing.xml")
        assert exc_info.value.description

    def test_import_wrong_document(self, syschar_file):
        """A system characteristics document is not a definitions document."""
        with pytest.raises(DocumentImportError, match="oval_definitions"):
            DefinitionModel.import_file(syschar_file)

    def test_import_rejects_duplicate_ids(self, definitions_file):
        """Two entries sharing an id would collapse into one catalogue entry."""
        content = definitions_file.read_text()

        for section, prefix in [("definition", "def"), ("test", "tst"), ("object", "obj")]:
            definitions_file.write_text(
                content.replace(f'id="oval:test:{prefix}:2"', f'id="oval:test:{prefix}:1"')
            )

            with pytest.raises(DocumentImportError) as exc_info:
                DefinitionModel.import_file(definitions_file)

            assert exc_info.value.description == f"Duplicate {section} id oval:test:{prefix}:1"

    def test_released_model_refuses_use(self, definitions_file):
        model = DefinitionModel.import_file(definitions_file)
        model.close()
        model.close()

        assert model.closed
        with pytest.raises(ModelReleasedError):
            model.definitions


class TestSystemCharacteristicsModel:
    """Tests for system characteristics."""

    def test_import(self, definitions_file, syschar_file):
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                syschar.import_file(syschar_file)

                assert syschar.sysinfo.primary_host_name == "testhost"
                collected = syschar.get_collected_object("oval:test:obj:1")
                assert collected.flag is ObjectFlag.COMPLETE
                [item] = syschar.get_items(collected)
                assert item.values("value")[0].value == "other"
                assert syschar.get_collected_object("oval:test:obj:2").flag is ObjectFlag.DOES_NOT_EXIST

    def test_import_rejects_unknown_objects(self, definitions_file, syschar_file, tmp_path):
        """Collected objects must exist in the bound definitions."""
        other = tmp_path / "other.xml"
        other.write_text(syschar_file.read_text().replace("oval:test:obj:2", "oval:test:obj:99"))

        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                with pytest.raises(DocumentImportError, match="oval:test:obj:99"):
                    syschar.import_file(other)

    def test_import_rejects_dangling_items(self, definitions_file, syschar_file, tmp_path):
        other = tmp_path / "other.xml"
        other.write_text(syschar_file.read_text().replace('item_ref="1"', 'item_ref="7"'))

        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                with pytest.raises(DocumentImportError, match="unknown items"):
                    syschar.import_file(other)

    def test_import_unparsable(self, definitions_file, tmp_path):
        broken = tmp_path / "broken.xml"
        broken.write_text("<oval_system_characteristics")

        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                with pytest.raises(DocumentImportError):
                    syschar.import_file(broken)

    def test_export_requires_sysinfo(self, definitions_file):
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                assert not syschar.is_complete
                with pytest.raises(IncompleteModelError):
                    syschar.export(io.StringIO())

                syschar.set_sysinfo(SYSINFO)
                assert syschar.is_complete
                syschar.export(io.StringIO())

    def test_identical_items_are_shared(self, definitions_file):
        """The same item collected for two objects is stored once."""
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                result = ProbeResult(items=[env_item(PRESENT_VARIABLE, "expected")])
                first = syschar.add_probe_result(definitions.objects["oval:test:obj:1"], result)
                second = syschar.add_probe_result(definitions.objects["oval:test:obj:2"], result)

                assert first.item_refs == second.item_refs == ["1"]
                assert len(syschar.items) == 1

    def test_export_round_trip(self, definitions_file, tmp_path):
        """An exported snapshot imports back into an equivalent model."""
        path = tmp_path / "collected.xml"
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                syschar.set_sysinfo(SYSINFO)
                syschar.add_probe_result(
                    definitions.objects["oval:test:obj:1"],
                    ProbeResult(items=[env_item(PRESENT_VARIABLE, "expected")]),
                )
                syschar.add_probe_result(
                    definitions.objects["oval:test:obj:2"],
                    ProbeResult(flag=ObjectFlag.DOES_NOT_EXIST),
                )
                syschar.export(path)

            with SystemCharacteristicsModel(definitions) as imported:
                imported.import_file(path)

                assert imported.sysinfo == SYSINFO
                assert set(imported.collected_objects) == {"oval:test:obj:1", "oval:test:obj:2"}
                [item] = imported.get_items(imported.get_collected_object("oval:test:obj:1"))
                assert item.values("value")[0].value == "expected"

    def test_export_replaces_forbidden_characters(self, definitions_file):
        """Values holding control characters still export to well-formed XML."""
        stream = io.StringIO()
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                syschar.set_sysinfo(SYSINFO)
                syschar.add_probe_result(
                    definitions.objects["oval:test:obj:1"],
                    ProbeResult(items=[env_item(PRESENT_VARIABLE, "\x1b[0mred\x00")]),
                )
                syschar.export(stream)

        root = xmlio.tree.fromstring(stream.getvalue().split("\n", 1)[1])
        [item] = xmlio.parse_syschar(root)[3]
        assert item.values("value")[0].value == "\uFFFD[0mred\uFFFD"


class TestResultsModel:
    """Tests for results export and re-import."""

    def test_requires_systems(self, definitions_file):
        with DefinitionModel.import_file(definitions_file) as definitions:
            with pytest.raises(ValueError):
                ResultsModel(definitions, [])

    def test_export_and_reload(self, definitions_file, syschar_file, tmp_path):
        """Every verdict survives an export and re-import."""
        path = tmp_path / "results.xml"
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                syschar.import_file(syschar_file)
                with ResultsModel(definitions, [syschar]) as results:
                    results.evaluate()
                    verdicts = results.verdicts()
                    results.export(ResultDirectives.full(), path)

        document = load_results(path)

        assert verdicts == {
            "oval:test:def:1": Verdict.TRUE,
            "oval:test:def:2": Verdict.FALSE,
            "oval:test:def:3": Verdict.TRUE,
        }
        [system] = document.systems
        assert system.verdicts() == verdicts
        assert system.sysinfo.primary_host_name == "testhost"
        assert system.definitions["oval:test:def:2"].criteria is not None
        assert "oval:test:tst:2" in system.tests
        assert document.definition_title("oval:test:def:2") == "Variable has the expected value"
        assert document.directives == ResultDirectives.full()

    def test_directives_filter_export(self, definitions_file, syschar_file):
        """Unreported verdicts are left out, thin content drops the criteria."""
        directives = (
            ResultDirectives.full()
            .with_reported([Verdict.FALSE], False)
            .with_content([Verdict.TRUE], ContentLevel.THIN)
        )
        with DefinitionModel.import_file(definitions_file) as definitions:
            with SystemCharacteristicsModel(definitions) as syschar:
                syschar.import_file(syschar_file)
                with ResultsModel(definitions, [syschar]) as results:
                    results.evaluate()
                    root = xmlio.build_results(
                        definitions.document,
                        [(results.primary.system, syschar.to_element())],
                        directives,
                        "5.11.2",
                    )

        document = xmlio.parse_results(root)
        [system] = document.systems

        assert set(system.definitions) == {"oval:test:def:1", "oval:test:def:3"}
        assert system.definitions["oval:test:def:1"].criteria is None
        assert system.tests == {}
        assert not document.directives.is_reported(Verdict.FALSE)

    def test_load_results_rejects_other_documents(self, definitions_file):
        with pytest.raises(DocumentImportError):
            load_results(definitions_file)

    def test_object_definition_is_independent(self):
        """Records from the models are plain values usable without a document."""
        obj = ObjectDef(id="oval:x:obj:1", type="family")
        assert obj.tag == "family_object"
