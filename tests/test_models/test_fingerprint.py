"""Tests for fetch fingerprints and enrichment payload schemas."""

import json

from vulnfeed.schemas.enrichment import EPSSItem, Fingerprint


class TestFingerprint:
    def test_empty_value(self):
        fp = Fingerprint.parse("")
        assert not fp
        assert fp.etag == "" and fp.date == ""

    def test_round_trip(self):
        fp = Fingerprint(etag='"abc"', date="Mon, 24 Feb 2025 17:55:31 GMT")
        assert Fingerprint.parse(fp.dumps()) == fp

    def test_dumps_omits_empty_fields(self):
        assert json.loads(Fingerprint(date="Mon, 24 Feb 2025 17:55:31 GMT").dumps()) == {
            "Date": "Mon, 24 Feb 2025 17:55:31 GMT"
        }

    def test_bare_string_is_an_etag(self):
        fp = Fingerprint.parse('W/"5f2a"')
        assert fp.etag == 'W/"5f2a"'
        assert fp.date == ""

    def test_non_object_json_is_an_etag(self):
        assert Fingerprint.parse("42").etag == "42"


class TestEPSSItem:
    def test_serializes_with_camel_case_model_version(self):
        item = EPSSItem(model_version="v2023.03.01", date="2025-02-23", cve="CVE-2021-44228", epss=0.9, percentile=0.99)
        assert item.model_dump(by_alias=True) == {
            "modelVersion": "v2023.03.01",
            "date": "2025-02-23",
            "cve": "CVE-2021-44228",
            "epss": 0.9,
            "percentile": 0.99,
        }
