"""
Distribution scanning.

Each distribution family declares the release files it reads and an
ordered table of (release, regex) pairs. The first pattern that matches
any file body identifies the layer's distribution.
"""

import logging
import re
from typing import List, Optional, Pattern, Sequence, Tuple

from vulnfeed.models.index import Layer
from vulnfeed.models.vulnerability import Distribution

logger = logging.getLogger(__name__)

ReleaseTable = Sequence[Tuple[Distribution, Pattern[str]]]


class DistributionScanner:
    """
    Regex-table distribution scanner.

    Subclasses set ``name``, ``release_files`` and ``releases``.
    """

    name: str = ""
    version: str = "1"
    release_files: Sequence[str] = ()
    releases: ReleaseTable = ()

    def scan(self, layer: Layer) -> Optional[List[Distribution]]:
        """
        Identify the distribution in ``layer``.

        Returns:
            None when no release file exists (no signal), an empty list when
            files exist but nothing matches, else the matching release
        """
        found = False
        for path in self.release_files:
            body = layer.read(path)
            if body is None:
                continue
            found = True
            dist = self.match(body.decode("utf-8", errors="replace"))
            if dist is not None:
                logger.debug(f"{self.name}: layer {layer.hash} identified as {dist.pretty_name} via {path}")
                return [dist]
        if not found:
            logger.debug(f"{self.name}: layer {layer.hash} has no release files")
            return None
        return []

    def match(self, text: str) -> Optional[Distribution]:
        for dist, pattern in self.releases:
            if pattern.search(text):
                return dist
        return None


def os_release_pattern(did: str, version: str) -> Pattern[str]:
    """Match an os-release body declaring ``ID=did`` and a major ``version``, keys in any order."""
    return re.compile(
        r"\A(?=.*^ID=\"?%s\"?\s*$)(?=.*^VERSION(?:_ID)?=\"?%s(?:\.\d+)*(?:\s[^\"\n]*)?\"?\s*$)"
        % (re.escape(did), re.escape(version)),
        re.MULTILINE | re.DOTALL,
    )
