"""
os-release parsing.

Fallback scanner for layers whose distribution has no dedicated table.
"""

import logging
from typing import Dict, List, Optional

from vulnfeed.models.index import Layer
from vulnfeed.models.vulnerability import Distribution

logger = logging.getLogger(__name__)

OS_RELEASE_PATHS = ("etc/os-release", "usr/lib/os-release")


def parse(text: str) -> Dict[str, str]:
    """Parse ``KEY=value`` lines, stripping surrounding quotes."""
    values: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        values[key.strip()] = value.replace('\\"', '"')
    return values


def to_distribution(values: Dict[str, str]) -> Distribution:
    did = values.get("ID", "") or "linux"
    version_id = values.get("VERSION_ID", "")
    return Distribution(
        id=f"{did}:{version_id}" if version_id else did,
        did=did,
        name=values.get("NAME", "") or "Linux",
        version=values.get("VERSION", ""),
        version_id=version_id,
        version_code_name=values.get("VERSION_CODENAME", ""),
        pretty_name=values.get("PRETTY_NAME", "") or "Linux",
        cpe=values.get("CPE_NAME", ""),
    )


class OsReleaseScanner:
    name = "os-release"
    version = "1"

    def scan(self, layer: Layer) -> Optional[List[Distribution]]:
        for path in OS_RELEASE_PATHS:
            body = layer.read(path)
            if body is None:
                continue
            values = parse(body.decode("utf-8", errors="replace"))
            if not values:
                return []
            return [to_distribution(values)]
        return None
