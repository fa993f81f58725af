import re
from functools import lru_cache
from typing import List, Tuple

from vulnfeed.models.vulnerability import Distribution
from vulnfeed.services.indexer.base import DistributionScanner, os_release_pattern

ORACLE_VERSIONS = ("5", "6", "7", "8", "9", "10")


@lru_cache(maxsize=None)
def oracle_linux(version: str) -> Distribution:
    """The Oracle Linux distribution for a major release; the feeds are keyed by major version."""
    return Distribution(
        id=f"ol:{version}",
        did="ol",
        name="Oracle Linux Server",
        version=version,
        version_id=version,
        pretty_name=f"Oracle Linux Server {version}",
        cpe=f"cpe:/o:oracle:linux:{version}",
    )


def _releases() -> List[Tuple[Distribution, "re.Pattern[str]"]]:
    table = []
    # Newest first so "10" is tried before anything that could prefix it
    for version in reversed(ORACLE_VERSIONS):
        dist = oracle_linux(version)
        table.append((dist, os_release_pattern("ol", version)))
        table.append(
            (dist, re.compile(r"Oracle Linux Server release %s(?:\.\d+)?\b" % version, re.IGNORECASE))
        )
    return table


class OracleDistributionScanner(DistributionScanner):
    name = "oracle"
    release_files = ("etc/oracle-release", "etc/os-release", "usr/lib/os-release", "etc/issue")
    releases = _releases()
