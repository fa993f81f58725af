from vulnfeed.services.oval.document import links, parse_document
from vulnfeed.services.oval.dpkg import dpkg_defs_to_vulns
from vulnfeed.services.oval.mapper import MappingStats, PackageCache, enabled_modules
from vulnfeed.services.oval.rpm import definition_type, rpm_defs_to_vulns
from vulnfeed.services.oval.walker import walk

__all__ = [
    "MappingStats",
    "PackageCache",
    "definition_type",
    "dpkg_defs_to_vulns",
    "enabled_modules",
    "links",
    "parse_document",
    "rpm_defs_to_vulns",
    "walk",
]
