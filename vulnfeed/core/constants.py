"""
Shared Constants

Centralized constants used across the package to ensure consistency.
"""

import re
from typing import Dict

# Canonical CVE identifier pattern, tolerant of underscores and any case
CVE_PATTERN = re.compile(r"(?i:cve)[-_][0-9]{4}[-_][0-9]{4,}")

# Enrichment media types
EPSS_ENRICHER_NAME = "clair.epss"
EPSS_MEDIA_TYPE = "message/vnd.clair.map.vulnerability; enricher=clair.epss schema=none"
KEV_ENRICHER_NAME = "clair.kev"
KEV_MEDIA_TYPE = (
    "message/vnd.clair.map.vulnerability; enricher=clair.kev "
    "schema=https://www.cisa.gov/sites/default/files/feeds/known_exploited_vulnerabilities_schema.json"
)

# Expected EPSS CSV header columns, in order
EPSS_HEADER = ["cve", "epss", "percentile"]

# Content types recognised when sniffing feed compression
COMPRESSION_CONTENT_TYPES: Dict[str, str] = {
    "application/gzip": "gzip",
    "application/x-gzip": "gzip",
    "application/x-bzip2": "bzip2",
    "application/x-bzip": "bzip2",
    "application/zstd": "zstd",
    "application/x-zstd": "zstd",
    "application/xml": "none",
    "text/xml": "none",
    "application/json": "none",
    "text/csv": "none",
    "text/plain": "none",
}

# File extensions recognised when sniffing feed compression
COMPRESSION_EXTENSIONS: Dict[str, str] = {
    ".gz": "gzip",
    ".gzip": "gzip",
    ".bz2": "bzip2",
    ".bzip2": "bzip2",
    ".zst": "zstd",
    ".zstd": "zstd",
}

# Timeouts for index, manifest and mapping requests, in seconds
FEED_TIMEOUTS: Dict[str, float] = {
    "default": 30.0,
    "repo2cpe": 60.0,
}

# Minimum interval between repository mapping refresh attempts
MAPPING_REFRESH_MIN_INTERVAL_SECONDS = 600

# Repository key used for vendor repositories in layer artifacts
RHEL_REPOSITORY_KEY = "rhel-cpe-repository"
