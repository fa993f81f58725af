"""Tests for index models."""

from vulnfeed.models.index import Environment, IndexReport, Layer
from vulnfeed.models.vulnerability import Distribution, Package, Repository


class TestLayer:
    def test_read_strips_leading_slash(self):
        layer = Layer(hash="sha256:aaa", files={"etc/os-release": b"ID=ol"})
        assert layer.read("/etc/os-release") == b"ID=ol"
        assert layer.read("etc/issue") is None


class TestIndexReport:
    def test_index_records_expand_repositories(self):
        dist = Distribution(id="d1", did="rhel", version="8")
        report = IndexReport(
            packages={"p1": Package(id="p1", name="bash", version="4.4.20-4.el8")},
            distributions={"d1": dist},
            repositories={
                "r1": Repository(id="r1", name="baseos"),
                "r2": Repository(id="r2", name="appstream"),
            },
            environments={
                "p1": [Environment(package_db="var/lib/rpm", distribution_id="d1", repository_ids=["r1", "r2"])]
            },
        )

        records = report.index_records()

        assert [r.repository.name for r in records] == ["baseos", "appstream"]
        assert all(r.distribution == dist for r in records)

    def test_index_records_without_repositories(self):
        report = IndexReport(
            packages={"p1": Package(id="p1", name="bash")},
            environments={"p1": [Environment(package_db="var/lib/dpkg/status")]},
        )

        records = report.index_records()

        assert len(records) == 1
        assert records[0].repository is None
        assert records[0].distribution is None
