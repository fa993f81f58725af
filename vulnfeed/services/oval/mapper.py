"""
Shared OVAL definition to vulnerability mapping.

Both the RPM and the DPKG flavours resolve test → object → state for
every conjunction of every definition and emit one record per package
assertion. They differ only in the test kind they accept, how an object
name expands, and how a version string is validated.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from vulnfeed.core.metrics import records_skipped_total
from vulnfeed.models.vulnerability import ArchOp, Package, PackageKind, Vulnerability
from vulnfeed.schemas.oval import Criterion, Definition, ObjectName, OvalState, Root
from vulnfeed.services.oval.walker import walk

logger = logging.getLogger(__name__)

ProtoFunc = Callable[[Definition], List[Vulnerability]]
NameLookupFunc = Callable[[Definition, ObjectName], List[str]]
VersionCheckFunc = Callable[[str], bool]

MODULE_COMMENT = re.compile(r"Module (\S+) is enabled")

ARCH_OPERATIONS: Dict[str, ArchOp] = {
    "equals": ArchOp.EQUALS,
    "not equal": ArchOp.NOT_EQUALS,
    "pattern match": ArchOp.PATTERN_MATCH,
}

# EVR operations that assert a vulnerable range
FIXED_OPERATIONS = ("less than",)
VULNERABLE_OPERATIONS = ("equals", "less than or equal")


class MappingStats(BaseModel):
    """Per-parse counters for records skipped without failing the batch."""

    test_lookup_failures: int = 0
    object_lookup_failures: int = 0
    state_lookup_failures: int = 0
    existence_checks: int = 0
    missing_evr: int = 0
    unsupported_operations: int = 0
    bad_versions: List[str] = Field(default_factory=list)

    def skip(self, reason: str) -> None:
        setattr(self, reason, getattr(self, reason) + 1)
        records_skipped_total.labels(reason=reason).inc()


class PackageCache:
    """Hands out one shared Package per (name, module, arch) in a parse."""

    def __init__(self):
        self._packages: Dict[Tuple[str, str, str], Package] = {}

    def get(self, name: str, module: str = "", arch: str = "") -> Package:
        # the same name can be asserted per module stream and per arch
        key = (name, module, arch)
        pkg = self._packages.get(key)
        if pkg is None:
            pkg = Package(name=name, module=module, arch=arch, kind=PackageKind.BINARY)
            self._packages[key] = pkg
        return pkg

    def __len__(self) -> int:
        return len(self._packages)


def enabled_modules(conjunction: List[Criterion]) -> List[str]:
    """Modules named by "Module X:Y is enabled" comments, or the empty module."""
    modules: List[str] = []
    for criterion in conjunction:
        for match in MODULE_COMMENT.finditer(criterion.comment):
            if match.group(1) not in modules:
                modules.append(match.group(1))
    return modules or [""]


def variable_name_lookup(root: Root) -> NameLookupFunc:
    """Expand object names through the document's constant variables."""

    def lookup(definition: Definition, name: ObjectName) -> List[str]:
        if not name.var_ref:
            return [name.body] if name.body else []
        variable = root.lookup_variable(name.var_ref)
        if variable is None:
            logger.debug(f"{definition.id}: could not lookup variable {name.var_ref!r}")
            return []
        return [v for v in variable.values if v]

    return lookup


class DefinitionMapper:
    """
    Resolve OVAL definitions into Vulnerability records.

    Args:
        root: The decoded document
        proto: Builds the advisory-level prototypes for one definition;
            returning an empty list skips the definition
        test_kind: The info test element accepted, e.g. ``rpminfo_test``
        name_lookup: Expands an object name into package names; defaults
            to expanding ``var_ref`` names through the document variables
        version_check: Returns False for state EVRs that must be skipped
        stats: Counters to accumulate skipped records into
    """

    def __init__(
        self,
        root: Root,
        proto: ProtoFunc,
        test_kind: str,
        name_lookup: Optional[NameLookupFunc] = None,
        version_check: Optional[VersionCheckFunc] = None,
        stats: Optional[MappingStats] = None,
    ):
        self.root = root
        self.proto = proto
        self.test_kind = test_kind
        self.name_lookup = name_lookup or variable_name_lookup(root)
        self.version_check = version_check
        self.packages = PackageCache()
        self.stats = stats if stats is not None else MappingStats()

    def map(self) -> List[Vulnerability]:
        out: List[Vulnerability] = []
        for i, definition in enumerate(self.root.definitions):
            if i and i % 1000 == 0:
                logger.debug(f"processed {i} definitions")
            protos = self.proto(definition)
            if not protos:
                continue
            out.extend(self._map_definition(definition, protos))
        logger.debug(
            f"mapped {len(out)} vulnerabilities from {len(self.root.definitions)} definitions "
            f"({len(self.packages)} distinct packages, stats={self.stats.model_dump(exclude={'bad_versions'})})"
        )
        return out

    def _map_definition(self, definition: Definition, protos: List[Vulnerability]) -> List[Vulnerability]:
        out: List[Vulnerability] = []
        seen: Set[tuple] = set()
        for conjunction in walk(definition.criteria):
            modules = enabled_modules(conjunction)
            for criterion in conjunction:
                for name, state in self._resolve(definition, criterion):
                    record = self._assertion(state)
                    if record is None:
                        continue
                    fixed, vulnerable, arch, arch_op = record
                    for module in modules:
                        pkg = self.packages.get(name, module, arch)
                        for p, proto in enumerate(protos):
                            key = (p, name, module, arch, fixed, vulnerable, arch_op)
                            if key in seen:
                                continue
                            seen.add(key)
                            out.append(
                                proto.model_copy(
                                    update={
                                        "package": pkg,
                                        "fixed_in_version": fixed,
                                        "vulnerable_version": vulnerable,
                                        "arch_operation": arch_op,
                                    }
                                )
                            )
        return out

    def _resolve(self, definition: Definition, criterion: Criterion) -> List[Tuple[str, OvalState]]:
        """Find (package name, state) pairs asserted by one criterion."""
        test = self.root.lookup_test(criterion.test_ref)
        if test is None:
            logger.debug(f"{definition.id}: dangling test ref {criterion.test_ref!r}")
            self.stats.skip("test_lookup_failures")
            return []
        if test.kind != self.test_kind:
            return []
        if len(test.object_refs) != 1:
            logger.debug(f"{test.id}: expected one object reference, found {len(test.object_refs)}")
            self.stats.skip("object_lookup_failures")
            return []
        obj = self.root.lookup_object(test.object_refs[0])
        if obj is None or obj.name is None:
            logger.debug(f"{test.id}: unable to resolve object {test.object_refs[0]!r}")
            self.stats.skip("object_lookup_failures")
            return []
        if not test.state_refs:
            self.stats.skip("existence_checks")
            return []

        names = self.name_lookup(definition, obj.name)
        pairs: List[Tuple[str, OvalState]] = []
        for ref in test.state_refs:
            state = self.root.lookup_state(ref)
            if state is None:
                logger.debug(f"{test.id}: dangling state ref {ref!r}")
                self.stats.skip("state_lookup_failures")
                continue
            pairs.extend((name, state) for name in names)
        return pairs

    def _assertion(self, state: OvalState) -> Optional[Tuple[str, str, str, ArchOp]]:
        """Translate a state into (fixed, vulnerable, arch, arch operation)."""
        if state.evr is None:
            self.stats.skip("missing_evr")
            return None
        evr = state.evr.body.strip()
        if self.version_check is not None and not self.version_check(evr):
            logger.debug(f"{state.id}: skipping invalid version {evr!r}")
            self.stats.bad_versions.append(evr)
            records_skipped_total.labels(reason="bad_versions").inc()
            return None

        operation = state.evr.operation.strip().lower()
        fixed = vulnerable = ""
        if operation in FIXED_OPERATIONS:
            fixed = evr
        elif operation in VULNERABLE_OPERATIONS:
            vulnerable = evr
        else:
            self.stats.skip("unsupported_operations")
            return None

        arch, arch_op = "", ArchOp.NONE
        if state.arch is not None and state.arch.body.strip():
            arch = state.arch.body.strip()
            arch_op = ARCH_OPERATIONS.get(state.arch.operation.strip().lower() or "equals", ArchOp.EQUALS)
        return fixed, vulnerable, arch, arch_op
