"""
Enrichment and fetch bookkeeping schemas.

Records produced by enrichers are stored as (tags, JSON payload) pairs;
the payload models below define the JSON each enricher emits.
"""

import json
import logging
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class EnrichmentRecord(BaseModel):
    """A tag set (typically CVE IDs) and an opaque JSON payload."""

    tags: List[str] = Field(default_factory=list)
    enrichment: Any = None

    model_config = ConfigDict(frozen=True)


class EPSSItem(BaseModel):
    """EPSS (Exploit Prediction Scoring System) score for a CVE."""

    model_version: str = Field(..., alias="modelVersion")
    date: str
    cve: str
    epss: float  # Probability of exploitation in next 30 days (0.0 - 1.0)
    percentile: float  # Percentile rank among all scored CVEs (0.0 - 1.0)

    model_config = ConfigDict(populate_by_name=True)


class KEVEntry(BaseModel):
    """CISA Known Exploited Vulnerability entry."""

    cve: str
    vulnerability_name: str = ""
    catalog_version: str = ""
    date_added: str = ""
    short_description: str = ""
    required_action: str = ""
    due_date: str = ""
    known_ransomware_campaign_use: str = ""


class Fingerprint(BaseModel):
    """
    Conditional request state replayed on the next fetch.

    Serialized as ``{"Etag": ..., "Date": ...}`` with empty fields omitted,
    so the server may honor whichever validator it supports.
    """

    etag: str = Field("", alias="Etag")
    date: str = Field("", alias="Date")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def parse(cls, value: str) -> "Fingerprint":
        """Decode a stored fingerprint; an undecodable value is treated as a bare etag."""
        if not value:
            return cls()
        try:
            data = json.loads(value)
        except ValueError:
            logger.debug("fingerprint is not JSON, using it as an etag")
            return cls(etag=value)
        if not isinstance(data, dict):
            return cls(etag=value)
        return cls.model_validate(data)

    def dumps(self) -> str:
        data = {}
        if self.etag:
            data["Etag"] = self.etag
        if self.date:
            data["Date"] = self.date
        return json.dumps(data)

    def __bool__(self) -> bool:
        return bool(self.etag or self.date)
