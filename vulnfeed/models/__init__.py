from vulnfeed.models.index import Environment, IndexRecord, IndexReport, Layer, LayerArtifacts
from vulnfeed.models.report import VulnerabilityReport
from vulnfeed.models.vulnerability import (
    ArchOp,
    Distribution,
    Package,
    PackageKind,
    Repository,
    Severity,
    Vulnerability,
)

__all__ = [
    "ArchOp",
    "Distribution",
    "Environment",
    "IndexRecord",
    "IndexReport",
    "Layer",
    "LayerArtifacts",
    "Package",
    "PackageKind",
    "Repository",
    "Severity",
    "Vulnerability",
    "VulnerabilityReport",
]
