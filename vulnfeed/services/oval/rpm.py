"""RPM flavoured OVAL mapping, used by the Oracle and RHEL updaters."""

import logging
import re
from typing import List, Optional

from vulnfeed.models.vulnerability import Vulnerability
from vulnfeed.schemas.oval import Definition, Root
from vulnfeed.services.oval.mapper import DefinitionMapper, MappingStats, NameLookupFunc, ProtoFunc

logger = logging.getLogger(__name__)

RPMINFO_TEST = "rpminfo_test"

DEFINITION_TYPE = re.compile(r"^oval:com\.redhat\.([a-z]+):def:\d+$")

# Definition kinds published by Red Hat
CVE_DEFINITION = "cve"
RHSA_DEFINITION = "rhsa"
RHBA_DEFINITION = "rhba"
RHEA_DEFINITION = "rhea"
UNAFFECTED_DEFINITION = "unaffected"
NONE_DEFINITION = ""


def definition_type(definition: Definition) -> str:
    """Classify a Red Hat definition by its id, e.g. ``oval:com.redhat.rhsa:def:20201234``."""
    match = DEFINITION_TYPE.match(definition.id)
    if match is None:
        return NONE_DEFINITION
    return match.group(1)


def rpm_defs_to_vulns(
    root: Root,
    proto: ProtoFunc,
    name_lookup: Optional[NameLookupFunc] = None,
    stats: Optional[MappingStats] = None,
) -> List[Vulnerability]:
    """
    Map every rpminfo assertion in ``root`` to Vulnerability records.

    Conjunction comments of the form "Module X:Y is enabled" scope the
    emitted packages to those modules. Object names given as a
    ``var_ref`` expand to every value of the referenced variable.
    """
    return DefinitionMapper(root, proto, RPMINFO_TEST, name_lookup=name_lookup, stats=stats).map()
