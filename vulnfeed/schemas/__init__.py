"""
Schema Exports

Centralized export of the Pydantic models describing feed payloads.
"""

from vulnfeed.schemas.enrichment import EnrichmentRecord, EPSSItem, Fingerprint, KEVEntry

__all__ = [
    "EnrichmentRecord",
    "EPSSItem",
    "Fingerprint",
    "KEVEntry",
]
