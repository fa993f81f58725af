"""Tests for the distribution matchers."""

from vulnfeed.core.constants import RHEL_REPOSITORY_KEY
from vulnfeed.models.index import IndexRecord
from vulnfeed.models.vulnerability import ArchOp, Package, Repository, Vulnerability
from vulnfeed.services.indexer.oracle import oracle_linux
from vulnfeed.services.indexer.rhel import rhel_release
from vulnfeed.services.indexer.ubuntu import ubuntu_release
from vulnfeed.services.matcher import MatchConstraint, OracleMatcher, RHELMatcher, UbuntuMatcher
from vulnfeed.services.matcher.base import satisfies

FIXED = "1:18.17.1-1.module+el8.8.0+21166+8deaec44"


def _nodejs_vuln(**overrides) -> Vulnerability:
    data = dict(
        name="ELSA-2023-5362",
        package=Package(name="nodejs", module="nodejs:18", arch="aarch64|x86_64"),
        dist=oracle_linux("8"),
        fixed_in_version=FIXED,
        arch_operation=ArchOp.PATTERN_MATCH,
    )
    data.update(overrides)
    return Vulnerability(**data)


def _record(version: str, arch: str = "x86_64", module: str = "nodejs:18", dist=None, repo=None) -> IndexRecord:
    return IndexRecord(
        package=Package(name="nodejs", version=version, arch=arch, module=module),
        distribution=dist or oracle_linux("8"),
        repository=repo,
    )


class TestOracleMatcher:
    matcher = OracleMatcher()

    def test_filter(self):
        assert self.matcher.filter(_record("1"))
        assert not self.matcher.filter(_record("1", dist=rhel_release("8")))
        assert not self.matcher.filter(IndexRecord(package=Package(name="nodejs")))

    def test_older_install_is_vulnerable(self):
        assert self.matcher.vulnerable(_record("1:18.14.2-2.module+el8.7.0+20999+abcdef12"), _nodejs_vuln())

    def test_fixed_install_is_not(self):
        assert not self.matcher.vulnerable(_record(FIXED), _nodejs_vuln())

    def test_module_must_match(self):
        assert not self.matcher.vulnerable(_record("1:16.0.0-1", module="nodejs:16"), _nodejs_vuln())

    def test_arch_pattern(self):
        assert not self.matcher.vulnerable(_record("1:18.0.0-1", arch="ppc64le"), _nodejs_vuln())

    def test_vulnerable_version_is_inclusive(self):
        vuln = _nodejs_vuln(fixed_in_version="", vulnerable_version="1:18.0.0-1")
        assert self.matcher.vulnerable(_record("1:18.0.0-1"), vuln)
        assert not self.matcher.vulnerable(_record("1:18.0.1-1"), vuln)

    def test_no_versions_means_always(self):
        assert self.matcher.vulnerable(_record("9:99-1"), _nodejs_vuln(fixed_in_version=""))

    def test_match_applies_query(self):
        candidates = [
            _nodejs_vuln(),
            _nodejs_vuln(dist=oracle_linux("9")),
            _nodejs_vuln(package=Package(name="nodejs-docs", module="nodejs:18")),
        ]
        matched = self.matcher.match(_record("1:18.0.0-1"), candidates)
        assert matched == [candidates[0]]


class TestRHELMatcher:
    matcher = RHELMatcher()

    def _vuln(self, product_cpe: str) -> Vulnerability:
        return _nodejs_vuln(
            dist=rhel_release("8"),
            repo=Repository(name=product_cpe, key=RHEL_REPOSITORY_KEY, cpe=product_cpe),
        )

    def _record(self, repo_cpe: str) -> IndexRecord:
        repo = Repository(name="rhel-8-for-x86_64-appstream-rpms", key=RHEL_REPOSITORY_KEY, cpe=repo_cpe)
        return _record("1:18.0.0-1", dist=rhel_release("8"), repo=repo)

    def test_cpe_within_advisory_product(self):
        vuln = self._vuln("cpe:/a:redhat:enterprise_linux:8::appstream")
        assert self.matcher.vulnerable(self._record("cpe:/a:redhat:enterprise_linux:8::appstream"), vuln)

    def test_cpe_outside_advisory_product(self):
        vuln = self._vuln("cpe:/a:redhat:enterprise_linux:8::appstream")
        assert not self.matcher.vulnerable(self._record("cpe:/a:redhat:rhel_eus:8.6::appstream"), vuln)

    def test_without_repository_falls_back_to_versions(self):
        vuln = self._vuln("cpe:/a:redhat:enterprise_linux:8::appstream")
        assert self.matcher.vulnerable(_record("1:18.0.0-1", dist=rhel_release("8")), vuln)

    def test_query(self):
        assert MatchConstraint.PACKAGE_MODULE in self.matcher.query()


class TestUbuntuMatcher:
    matcher = UbuntuMatcher()
    jammy = ubuntu_release("jammy", "22.04")

    def _record(self, version: str, arch: str = "") -> IndexRecord:
        return IndexRecord(
            package=Package(name="liblog4j2-java", version=version, arch=arch),
            distribution=self.jammy,
        )

    def _vuln(self, fixed: str = "", **overrides) -> Vulnerability:
        data = dict(
            name="CVE-2021-44228",
            package=Package(name="liblog4j2-java"),
            dist=self.jammy,
            fixed_in_version=fixed,
        )
        data.update(overrides)
        return Vulnerability(**data)

    def test_versions(self):
        assert self.matcher.vulnerable(self._record("2.15.0-1"), self._vuln("0:2.17.0-1"))
        assert not self.matcher.vulnerable(self._record("2.17.0-1"), self._vuln("0:2.17.0-1"))

    def test_unfixed_is_always_vulnerable(self):
        assert self.matcher.vulnerable(self._record("99"), self._vuln())

    def test_other_release_does_not_satisfy_query(self):
        vuln = self._vuln("2.17.0-1").model_copy(update={"dist": ubuntu_release("noble", "24.04")})
        assert not satisfies(self._record("2.15.0-1"), vuln, self.matcher.query())

    def test_package_name_must_match(self):
        vuln = self._vuln("2.17.0-1").model_copy(update={"package": Package(name="other")})
        assert self.matcher.match(self._record("2.15.0-1"), [vuln]) == []

    def test_vulnerable_version_is_inclusive(self):
        vuln = self._vuln(vulnerable_version="1.0-1")
        assert self.matcher.vulnerable(self._record("1.0-1"), vuln)
        assert self.matcher.vulnerable(self._record("0.9-3"), vuln)
        assert not self.matcher.vulnerable(self._record("2.0-1"), vuln)

    def test_tilde_sorts_before_release(self):
        vuln = self._vuln("2.17.0-1")
        assert self.matcher.vulnerable(self._record("2.17.0~rc1-1"), vuln)
        assert not self.matcher.vulnerable(self._record("1:2.0-1"), vuln)

    def test_arch_operation(self):
        vuln = self._vuln(
            "2.17.0-1",
            package=Package(name="liblog4j2-java", arch="amd64"),
            arch_operation=ArchOp.EQUALS,
        )
        assert self.matcher.vulnerable(self._record("2.15.0-1", arch="amd64"), vuln)
        assert not self.matcher.vulnerable(self._record("2.15.0-1", arch="arm64"), vuln)

    def test_unparseable_install_is_not_vulnerable(self):
        assert not self.matcher.vulnerable(self._record("not a version"), self._vuln("2.17.0-1"))
