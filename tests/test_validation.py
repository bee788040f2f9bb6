"""
Tests for document validation.
"""

from xml.etree import ElementTree as tree

import pytest

from oval_runner.core.validation import DocumentType, validate_document
from oval_runner.core.xmlio import NS_RESULTS, q
from oval_runner.errors import ValidatorError


def _collect(path, **kwargs):
    messages = []
    valid = validate_document(path, reporter=messages.append, **kwargs)
    return valid, messages


class TestValidateDocument:
    """Tests for validate_document."""

    def test_valid_documents(self, definitions_file, syschar_file, results_file):
        assert validate_document(definitions_file)
        assert validate_document(syschar_file, DocumentType.SYSCHAR)
        assert validate_document(results_file, "results")

    def test_wrong_document_type(self, syschar_file):
        valid, messages = _collect(syschar_file, doctype=DocumentType.DEFINITIONS)

        assert not valid
        assert "oval_definitions" in messages[0]

    def test_results_without_directives(self, results_file):
        """A results document must say which verdicts it reports."""
        document = tree.parse(results_file)
        root = document.getroot()
        root.remove(root.find(q(NS_RESULTS, "directives")))
        document.write(results_file)

        valid, messages = _collect(results_file, doctype=DocumentType.RESULTS)

        assert not valid
        assert any(m.startswith("directives") for m in messages)

    def test_syntax_error(self, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_text("<oval_definitions><generator>")

        valid, messages = _collect(path)

        assert not valid
        assert messages[0].startswith("XML syntax error")

    def test_unknown_check(self, definitions_file):
        definitions_file.write_text(definitions_file.read_text().replace('check="all"', 'check="most"', 1))

        valid, messages = _collect(definitions_file)

        assert not valid
        assert any(m.startswith("tests.0.check") for m in messages)

    def test_requested_version(self, definitions_file):
        assert validate_document(definitions_file, version="5.11.2")

        valid, messages = _collect(definitions_file, version="5.10")
        assert not valid
        assert "5.10" in messages[0]

    def test_unsupported_declared_version(self, definitions_file):
        definitions_file.write_text(definitions_file.read_text().replace(">5.11.2<", ">4.2<"))

        valid, messages = _collect(definitions_file)

        assert not valid
        assert "unsupported schema_version 4.2" in messages[0]

    def test_unsupported_requested_version(self, definitions_file):
        """An unknown version is a validator failure, not an invalid document."""
        with pytest.raises(ValidatorError):
            validate_document(definitions_file, version="6.0")

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ValidatorError):
            validate_document(tmp_path / "missing.xml")

    def test_duplicate_ids(self, definitions_file):
        """Definition and object ids must be unique within a document."""
        content = definitions_file.read_text()
        definitions_file.write_text(content.replace('id="oval:test:def:2"', 'id="oval:test:def:1"'))

        valid, messages = _collect(definitions_file)

        assert not valid
        assert any("duplicate id oval:test:def:1 in definitions" in m for m in messages)

        definitions_file.write_text(content.replace('id="oval:test:obj:2"', 'id="oval:test:obj:1"'))

        valid, messages = _collect(definitions_file)

        assert not valid
        assert any("duplicate id oval:test:obj:1 in objects" in m for m in messages)
