"""Vulnerability and enrichment feed ingestion for container image scanning."""

__version__ = "0.1.0"
