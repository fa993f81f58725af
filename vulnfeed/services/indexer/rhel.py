import re
from functools import lru_cache

from vulnfeed.models.vulnerability import Distribution
from vulnfeed.services.indexer.base import DistributionScanner

RHEL_VERSIONS = ("3", "4", "5", "6", "7", "8", "9", "10")


@lru_cache(maxsize=None)
def rhel_release(version: str) -> Distribution:
    """RHEL distribution for a major release; minor releases share one security database."""
    return Distribution(
        id=f"rhel:{version}",
        did="rhel",
        name="Red Hat Enterprise Linux Server",
        version=version,
        version_id=version,
        pretty_name=f"Red Hat Enterprise Linux Server {version}",
        cpe=f"cpe:/o:redhat:enterprise_linux:{version}",
    )


class RHELDistributionScanner(DistributionScanner):
    name = "rhel"
    release_files = ("etc/redhat-release", "etc/os-release", "usr/lib/os-release")
    releases = [
        (
            rhel_release(version),
            re.compile(r"Red Hat Enterprise Linux (?:Server)?\s*(?:release)?\s*%s(?:\.\d+)?\b" % version),
        )
        for version in reversed(RHEL_VERSIONS)
    ]
