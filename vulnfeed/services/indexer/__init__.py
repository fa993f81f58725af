from vulnfeed.services.indexer.base import DistributionScanner, os_release_pattern
from vulnfeed.services.indexer.coalescer import Coalescer
from vulnfeed.services.indexer.oracle import OracleDistributionScanner, oracle_linux
from vulnfeed.services.indexer.osrelease import OsReleaseScanner
from vulnfeed.services.indexer.repo2cpe import RepositoryCPEMapping
from vulnfeed.services.indexer.rhel import RHELDistributionScanner, rhel_release
from vulnfeed.services.indexer.ubuntu import UbuntuDistributionScanner, ubuntu_release

__all__ = [
    "Coalescer",
    "DistributionScanner",
    "OracleDistributionScanner",
    "OsReleaseScanner",
    "RHELDistributionScanner",
    "RepositoryCPEMapping",
    "UbuntuDistributionScanner",
    "oracle_linux",
    "os_release_pattern",
    "rhel_release",
    "ubuntu_release",
]
