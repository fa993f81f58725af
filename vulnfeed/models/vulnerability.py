import re
from enum import Enum, IntEnum
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(IntEnum):
    """Common ordinal severity scale, higher is more severe."""

    UNKNOWN = 0
    NEGLIGIBLE = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    CRITICAL = 5

    def __str__(self) -> str:
        return self.name.capitalize()


@lru_cache(maxsize=256)
def _compile_arch_pattern(pattern: str) -> "re.Pattern[str]":
    return re.compile(pattern)


class ArchOp(str, Enum):
    """How a vulnerability's architecture constrains an installed package."""

    NONE = ""
    EQUALS = "equals"
    NOT_EQUALS = "not equal"
    PATTERN_MATCH = "pattern match"

    def cmp(self, installed: str, recorded: str) -> bool:
        """Compare the installed architecture against the recorded one."""
        if self is ArchOp.EQUALS:
            return installed == recorded
        if self is ArchOp.NOT_EQUALS:
            return installed != recorded
        if self is ArchOp.PATTERN_MATCH:
            try:
                return _compile_arch_pattern(recorded).match(installed) is not None
            except re.error:
                return False
        return True


class PackageKind(str, Enum):
    BINARY = "binary"
    SOURCE = "source"


class Package(BaseModel):
    id: str = ""
    name: str
    version: str = ""
    kind: PackageKind = PackageKind.BINARY
    arch: str = ""
    module: str = ""
    source: Optional["Package"] = None
    package_db: str = ""
    repository_hint: str = ""


class Distribution(BaseModel):
    id: str = ""
    did: str = ""
    name: str = ""
    version: str = ""
    version_code_name: str = ""
    version_id: str = ""
    arch: str = ""
    cpe: str = ""
    pretty_name: str = ""

    model_config = ConfigDict(frozen=True)


class Repository(BaseModel):
    id: str = ""
    name: str = ""
    key: str = ""
    uri: str = ""
    cpe: str = ""

    model_config = ConfigDict(frozen=True)


class Vulnerability(BaseModel):
    """One advisory applicable to one package on one distribution."""

    id: str = ""
    updater: str = ""
    name: str = ""
    description: str = ""
    issued: str = ""
    links: str = ""
    severity: str = ""
    normalized_severity: Severity = Severity.UNKNOWN
    package: Optional[Package] = None
    dist: Distribution = Field(default_factory=Distribution)
    repo: Optional[Repository] = None
    fixed_in_version: str = ""
    vulnerable_version: str = ""
    arch_operation: ArchOp = ArchOp.NONE

    model_config = ConfigDict(frozen=True)

    def cve_candidates(self) -> List[str]:
        """Free-text fields searched for CVE identifiers."""
        return [self.description, self.name, self.links]
