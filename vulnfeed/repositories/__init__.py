"""
Store abstractions and the in-memory implementation.
"""

from vulnfeed.repositories.base import EnrichmentGetter, UpdaterStore
from vulnfeed.repositories.memory import MemoryEnrichmentGetter, MemoryStore, UpdateOperation

__all__ = [
    "EnrichmentGetter",
    "MemoryEnrichmentGetter",
    "MemoryStore",
    "UpdateOperation",
    "UpdaterStore",
]
