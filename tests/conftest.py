"""
Shared test fixtures and configuration.

Environment variables are set BEFORE any package imports so the settings
singleton never points at real feeds or a shared spool directory.
"""

import os
import sys

# Ensure the package and the test helpers are importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Override settings before any code imports the settings singleton
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["WORKER_COUNT"] = "2"
os.environ["ORACLE_BASE_URL"] = "https://oracle.test/security/oval/"
os.environ["RHEL_MANIFEST_URL"] = "https://rhel.test/oval/v2/PULP_MANIFEST"
os.environ["UBUNTU_API_URL"] = "https://launchpad.test/1.0/"
os.environ["UBUNTU_OVAL_URL"] = "https://ubuntu.test/oval/com.ubuntu.{release}.cve.oval.xml.bz2"
os.environ["EPSS_BASE_URL"] = "https://epss.test/"
os.environ["KEV_FEED_URL"] = "https://kev.test/known_exploited_vulnerabilities.json"
os.environ["REPO2CPE_URL"] = "https://rhel.test/repository-to-cpe.json"

import pytest  # noqa: E402

from tests.mocks.feeds import ORACLE_OVAL, UBUNTU_OVAL  # noqa: E402
from vulnfeed.repositories.memory import MemoryStore  # noqa: E402
from vulnfeed.services.oval.document import parse_document  # noqa: E402


@pytest.fixture
def oracle_root():
    """Decoded Oracle ELSA document with one modular definition."""
    return parse_document(ORACLE_OVAL)


@pytest.fixture
def ubuntu_root():
    """Decoded Ubuntu document using constant variables for package names."""
    return parse_document(UBUNTU_OVAL)


@pytest.fixture
def store():
    return MemoryStore()
