"""Tests for layer coalescing."""

from vulnfeed.core.constants import RHEL_REPOSITORY_KEY
from vulnfeed.models.index import LayerArtifacts
from vulnfeed.models.vulnerability import Distribution, Package, Repository
from vulnfeed.services.indexer.coalescer import Coalescer, repoids

RPMDB = "var/lib/rpm"
RHEL8 = Distribution(id="rhel:8", did="rhel", version="8")
BASEOS = Repository(
    id="r-baseos",
    name="cpe:/o:redhat:enterprise_linux:8::baseos",
    key=RHEL_REPOSITORY_KEY,
    uri="https://cdn.redhat.com/?repoid=rhel-8-for-x86_64-baseos-rpms",
    cpe="cpe:/o:redhat:enterprise_linux:8::baseos",
)
APPSTREAM = Repository(
    id="r-appstream",
    name="cpe:/a:redhat:enterprise_linux:8::appstream",
    key=RHEL_REPOSITORY_KEY,
    uri="https://cdn.redhat.com/?repoid=rhel-8-for-x86_64-appstream-rpms",
    cpe="cpe:/a:redhat:enterprise_linux:8::appstream",
)


def _pkg(pid: str, name: str, hint: str = "") -> Package:
    return Package(id=pid, name=name, version="1.0-1.el8", package_db=RPMDB, repository_hint=hint)


class TestRepoids:
    def test_from_hint(self):
        assert repoids("repoid=rhel-8-for-x86_64-baseos-rpms") == ["rhel-8-for-x86_64-baseos-rpms"]

    def test_from_uri(self):
        assert repoids(BASEOS.uri) == ["rhel-8-for-x86_64-baseos-rpms"]

    def test_empty(self):
        assert repoids("") == []


class TestCoalescer:
    def test_empty_input(self):
        report = Coalescer().coalesce([])
        assert report.packages == {}

    def test_repositories_propagate_to_layers_without_them(self):
        layers = [
            LayerArtifacts(hash="l0", packages=[_pkg("1", "bash")], distributions=[RHEL8]),
            LayerArtifacts(hash="l1", packages=[_pkg("1", "bash"), _pkg("2", "httpd")], repositories=[BASEOS]),
        ]

        report = Coalescer(repository_key=RHEL_REPOSITORY_KEY).coalesce(layers)

        bash_env = report.environments["1"][0]
        assert bash_env.introduced_in == "l0"
        assert bash_env.repository_ids == ["r-baseos"]
        assert bash_env.distribution_id == "rhel:8"

    def test_removed_packages_are_dropped(self):
        layers = [
            LayerArtifacts(hash="l0", packages=[_pkg("1", "bash"), _pkg("2", "vim")], distributions=[RHEL8]),
            LayerArtifacts(hash="l1", packages=[_pkg("1", "bash")]),
        ]

        report = Coalescer().coalesce(layers)

        assert set(report.packages) == {"1"}

    def test_layers_without_the_database_do_not_remove(self):
        other = Package(id="9", name="libc6", package_db="var/lib/dpkg/status")
        layers = [
            LayerArtifacts(hash="l0", packages=[_pkg("1", "bash")]),
            LayerArtifacts(hash="l1", packages=[other]),
        ]

        report = Coalescer().coalesce(layers)

        assert set(report.packages) == {"1", "9"}

    def test_repoid_hint_narrows_association(self):
        layers = [
            LayerArtifacts(
                hash="l0",
                packages=[_pkg("1", "nodejs", hint="repoid=rhel-8-for-x86_64-appstream-rpms")],
                repositories=[BASEOS, APPSTREAM],
                distributions=[RHEL8],
            )
        ]

        report = Coalescer().coalesce(layers)

        assert report.environments["1"][0].repository_ids == ["r-appstream"]

    def test_non_vendor_repositories_stay_in_their_layer(self):
        epel = Repository(id="r-epel", name="epel", key="other")
        layers = [
            LayerArtifacts(hash="l0", packages=[_pkg("1", "bash")], repositories=[epel]),
            LayerArtifacts(hash="l1", packages=[_pkg("1", "bash"), _pkg("2", "httpd")]),
        ]

        report = Coalescer(repository_key=RHEL_REPOSITORY_KEY).coalesce(layers)

        assert report.environments["2"][0].repository_ids == []
        assert report.environments["1"][0].repository_ids == ["r-epel"]

    def test_later_distribution_replaces_earlier(self):
        rhel9 = Distribution(id="rhel:9", did="rhel", version="9")
        layers = [
            LayerArtifacts(hash="l0", packages=[_pkg("1", "bash")], distributions=[RHEL8]),
            LayerArtifacts(hash="l1", packages=[_pkg("1", "bash"), _pkg("2", "httpd")], distributions=[rhel9]),
        ]

        report = Coalescer().coalesce(layers)

        assert report.environments["1"][0].distribution_id == "rhel:8"
        assert report.environments["2"][0].distribution_id == "rhel:9"
        assert set(report.distributions) == {"rhel:8", "rhel:9"}
