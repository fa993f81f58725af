"""Tests for OVAL document decoding."""

import io

import pytest

from tests.mocks.feeds import ORACLE_OVAL
from vulnfeed.core.exceptions import ParseError
from vulnfeed.services.oval.document import links, parse_document


class TestParseDocument:
    def test_definitions_and_metadata(self, oracle_root):
        definition = oracle_root.definitions[0]

        assert definition.id == "oval:com.oracle.elsa:def:20235362"
        assert definition.class_ == "patch"
        assert definition.title.startswith("ELSA-2023-5362")
        assert definition.affecteds[0].platforms == ["Oracle Linux 8"]
        assert definition.references[0].ref_id == "ELSA-2023-5362"
        assert definition.advisory.severity == "MODERATE"
        assert definition.advisory.issued == "2023-09-28"
        assert definition.advisory.affected_cpes == ["cpe:/a:oracle:linux:8::appstream"]

    def test_lookup_maps(self, oracle_root):
        test = oracle_root.lookup_test("oval:com.oracle.elsa:tst:20235362003")
        assert test.kind == "rpminfo_test"
        assert test.object_refs == ["oval:com.oracle.elsa:obj:20235362002"]

        obj = oracle_root.lookup_object("oval:com.oracle.elsa:obj:20235362002")
        assert obj.name.body == "nodejs"

        state = oracle_root.lookup_state("oval:com.oracle.elsa:ste:20235362002")
        assert state.evr.operation == "less than"
        assert state.arch.body == "aarch64|x86_64"

        assert oracle_root.lookup_test("oval:missing") is None

    def test_other_test_kinds_are_kept(self, oracle_root):
        test = oracle_root.lookup_test("oval:com.oracle.elsa:tst:20235362002")
        assert test.kind == "textfilecontent54_test"

    def test_variables(self, ubuntu_root):
        variable = ubuntu_root.lookup_variable("oval:com.ubuntu.jammy:var:202144228000000")
        assert variable.values == ["liblog4j2-java", "liblog4j2-java-doc"]

    def test_accepts_file_objects(self):
        root = parse_document(io.BytesIO(ORACLE_OVAL))
        assert len(root.definitions) == 2

    def test_malformed_xml_raises(self):
        with pytest.raises(ParseError):
            parse_document(b"<oval_definitions><definitions>")

    def test_wrong_root_element_raises(self):
        with pytest.raises(ParseError, match="root element"):
            parse_document(b"<html/>")


class TestLinks:
    def test_unique_urls_space_separated(self, oracle_root):
        result = links(oracle_root.definitions[0]).split(" ")

        assert result == [
            "https://linux.oracle.com/errata/ELSA-2023-5362.html",
            "https://linux.oracle.com/cve/CVE-2023-32002.html",
        ]
