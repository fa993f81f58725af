import re
from functools import lru_cache
from typing import Dict, List, Tuple

from vulnfeed.models.vulnerability import Distribution
from vulnfeed.services.indexer.base import DistributionScanner

# Codename to VERSION_ID for releases with published OVAL data
UBUNTU_RELEASES: Dict[str, str] = {
    "trusty": "14.04",
    "xenial": "16.04",
    "bionic": "18.04",
    "focal": "20.04",
    "jammy": "22.04",
    "noble": "24.04",
    "oracular": "24.10",
    "plucky": "25.04",
}


@lru_cache(maxsize=None)
def ubuntu_release(codename: str, version_id: str) -> Distribution:
    return Distribution(
        id=f"ubuntu:{version_id}",
        did="ubuntu",
        name="Ubuntu",
        version=f"{version_id} ({codename.capitalize()})",
        version_id=version_id,
        version_code_name=codename,
        pretty_name=f"Ubuntu {version_id}",
    )


def _releases() -> List[Tuple[Distribution, "re.Pattern[str]"]]:
    table = []
    for codename, version_id in UBUNTU_RELEASES.items():
        table.append(
            (
                ubuntu_release(codename, version_id),
                re.compile(
                    r"^(?:VERSION_CODENAME|UBUNTU_CODENAME|DISTRIB_CODENAME)=\"?%s\"?\s*$" % codename,
                    re.MULTILINE,
                ),
            )
        )
    return table


class UbuntuDistributionScanner(DistributionScanner):
    name = "ubuntu"
    release_files = ("etc/os-release", "usr/lib/os-release", "etc/lsb-release")
    releases = _releases()
