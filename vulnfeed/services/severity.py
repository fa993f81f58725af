"""
Severity normalization.

Each vendor labels advisories with its own vocabulary. These tables map
those labels onto the common ordinal ``Severity`` scale; anything not in
a table is Unknown.
"""

import logging
from typing import Dict, Optional

from vulnfeed.models.vulnerability import Severity

logger = logging.getLogger(__name__)

ORACLE_SEVERITIES: Dict[str, Severity] = {
    "N/A": Severity.UNKNOWN,
    "LOW": Severity.LOW,
    "MODERATE": Severity.MEDIUM,
    "IMPORTANT": Severity.HIGH,
    "CRITICAL": Severity.CRITICAL,
}

RHEL_SEVERITIES: Dict[str, Severity] = {
    "None": Severity.UNKNOWN,
    "Low": Severity.LOW,
    "Moderate": Severity.MEDIUM,
    "Important": Severity.HIGH,
    "Critical": Severity.CRITICAL,
}

UBUNTU_SEVERITIES: Dict[str, Severity] = {
    "Untriaged": Severity.UNKNOWN,
    "Negligible": Severity.NEGLIGIBLE,
    "Low": Severity.LOW,
    "Medium": Severity.MEDIUM,
    "High": Severity.HIGH,
    "Critical": Severity.CRITICAL,
}

SUSE_SEVERITIES: Dict[str, Severity] = {
    "low": Severity.LOW,
    "moderate": Severity.MEDIUM,
    "important": Severity.HIGH,
    "critical": Severity.CRITICAL,
}

# Case-insensitive fallback vocabulary
GENERIC_SEVERITIES: Dict[str, Severity] = {
    "unknown": Severity.UNKNOWN,
    "negligible": Severity.NEGLIGIBLE,
    "informational": Severity.NEGLIGIBLE,
    "low": Severity.LOW,
    "medium": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "high": Severity.HIGH,
    "important": Severity.HIGH,
    "critical": Severity.CRITICAL,
}

VENDOR_TABLES: Dict[str, Dict[str, Severity]] = {
    "oracle": ORACLE_SEVERITIES,
    "rhel": RHEL_SEVERITIES,
    "ubuntu": UBUNTU_SEVERITIES,
    "suse": SUSE_SEVERITIES,
}


def normalize_severity(severity: Optional[str], vendor: str = "") -> Severity:
    """
    Map a vendor severity label to the common scale.

    Vendor tables match exactly, as the feeds are consistent about case;
    without a vendor the generic table matches case-insensitively.

    Args:
        severity: The raw label from the feed
        vendor: One of the keys of VENDOR_TABLES, or empty for generic
    """
    if not severity:
        return Severity.UNKNOWN
    label = severity.strip()
    table = VENDOR_TABLES.get(vendor)
    if table is not None:
        found = table.get(label)
        if found is None:
            logger.debug(f"unknown {vendor} severity {label!r}")
            return Severity.UNKNOWN
        return found
    return GENERIC_SEVERITIES.get(label.lower(), Severity.UNKNOWN)
