"""DPKG flavoured OVAL mapping, used by the Ubuntu updater."""

import logging
from typing import List, Optional

from debian.debian_support import Version

from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.schemas.oval import Root
from vulnfeed.services.oval.mapper import (
    DefinitionMapper,
    MappingStats,
    NameLookupFunc,
    ProtoFunc,
)

logger = logging.getLogger(__name__)

DPKGINFO_TEST = "dpkginfo_test"


def valid_version(version: str) -> bool:
    try:
        Version(version)
    except ValueError:
        return False
    return True


def dpkg_defs_to_vulns(
    root: Root,
    proto: ProtoFunc,
    name_lookup: Optional[NameLookupFunc] = None,
    stats: Optional[MappingStats] = None,
) -> List[Vulnerability]:
    """
    Map every dpkginfo assertion in ``root`` to Vulnerability records.

    Versions that are not valid Debian versions are recorded in the stats
    and skipped.
    """
    mapper = DefinitionMapper(
        root,
        proto,
        DPKGINFO_TEST,
        name_lookup=name_lookup,
        version_check=valid_version,
        stats=stats,
    )
    vulns = mapper.map()
    if mapper.stats.bad_versions:
        logger.debug(f"skipped {len(mapper.stats.bad_versions)} invalid versions")
    return vulns
