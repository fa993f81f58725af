"""
Conditional feed fetching.

The Fetcher issues a conditional GET, transparently decompresses the body
and spools it to an anonymous temporary file, returning the spool
together with the fingerprint to replay on the next fetch.
"""

import bz2
import logging
import re
import threading
import zlib
from collections import defaultdict
from contextlib import contextmanager
from enum import Enum
from posixpath import splitext
from typing import Dict, Iterator, List, NamedTuple, Optional, Union
from urllib.parse import urlsplit

import httpx
import zstandard

from vulnfeed.core.constants import COMPRESSION_CONTENT_TYPES, COMPRESSION_EXTENSIONS
from vulnfeed.core.exceptions import ConfigurationError, FetchError, Unchanged
from vulnfeed.core.http_utils import check_response
from vulnfeed.core.metrics import (
    external_api_errors_total,
    feed_bytes_spooled_total,
    feed_unchanged_total,
)
from vulnfeed.schemas.enrichment import Fingerprint
from vulnfeed.services.spool import Spool

logger = logging.getLogger(__name__)

CONTENT_DISPOSITION_FILENAME = re.compile(
    r"""filename\*?=(?:[A-Za-z0-9_-]+'[^']*')?"?([^";]+)"?""", re.IGNORECASE
)

GZIP_WBITS = zlib.MAX_WBITS | 16


class Compression(str, Enum):
    AUTO = "auto"
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    ZSTD = "zstd"

    @classmethod
    def parse(cls, value: Union[str, "Compression", None]) -> "Compression":
        """Parse a configured compression name; empty means auto."""
        if isinstance(value, Compression):
            return value
        if not value:
            return cls.AUTO
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigurationError(f"unknown compression {value!r}")


def _from_filename(name: str) -> Optional[Compression]:
    _, ext = splitext(name.lower())
    kind = COMPRESSION_EXTENSIONS.get(ext)
    return Compression(kind) if kind else None


def detect_compression(response: httpx.Response) -> Compression:
    """
    Pick a codec from the response.

    Tries the Content-Type first, then the filename in Content-Disposition,
    then the extension of the URL path. Unknown types mean no compression.
    """
    content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    kind = COMPRESSION_CONTENT_TYPES.get(content_type)
    if kind:
        return Compression(kind)

    disposition = response.headers.get("content-disposition", "")
    match = CONTENT_DISPOSITION_FILENAME.search(disposition)
    if match:
        found = _from_filename(match.group(1))
        if found:
            return found

    found = _from_filename(urlsplit(str(response.request.url)).path)
    if found:
        return found
    return Compression.NONE


class Decompressor:
    """Streaming decompressor interface; reset() prepares for a new stream."""

    def reset(self) -> None:
        pass

    def decompress(self, data: bytes) -> bytes:
        return data

    def finish(self) -> bytes:
        return b""


class _MultiMemberDecompressor(Decompressor):
    """Shared handling for codecs whose files may hold concatenated members."""

    def __init__(self):
        self._obj = None
        self.reset()

    def _new(self):
        raise NotImplementedError

    def reset(self) -> None:
        self._obj = self._new()
        self._started = False

    def decompress(self, data: bytes) -> bytes:
        out = bytearray()
        while data:
            if self._obj.eof:
                self._obj = self._new()
            self._started = True
            out += self._obj.decompress(data)
            data = self._obj.unused_data if self._obj.eof else b""
        return bytes(out)

    def finish(self) -> bytes:
        if self._started and not self._obj.eof:
            raise FetchError("compressed stream is truncated")
        return b""


class GzipDecompressor(_MultiMemberDecompressor):
    def _new(self):
        return zlib.decompressobj(GZIP_WBITS)


class Bzip2Decompressor(_MultiMemberDecompressor):
    def _new(self):
        return bz2.BZ2Decompressor()


class ZstdDecompressor(_MultiMemberDecompressor):
    """Reuses one zstandard context; each frame gets a fresh stream object."""

    def __init__(self):
        self._ctx = zstandard.ZstdDecompressor()
        super().__init__()

    def _new(self):
        return self._ctx.decompressobj()


_CODECS = {
    Compression.NONE: Decompressor,
    Compression.GZIP: GzipDecompressor,
    Compression.BZIP2: Bzip2Decompressor,
    Compression.ZSTD: ZstdDecompressor,
}


class DecompressorPool:
    """Process-wide free lists of decompressors, keyed by codec."""

    def __init__(self, max_idle: int = 8):
        self._lock = threading.Lock()
        self._free: Dict[Compression, List[Decompressor]] = defaultdict(list)
        self._max_idle = max_idle

    def acquire(self, kind: Compression) -> Decompressor:
        if kind not in _CODECS:
            raise ConfigurationError(f"no decompressor for {kind.value!r}")
        with self._lock:
            free = self._free[kind]
            if free:
                return free.pop()
        return _CODECS[kind]()

    def release(self, kind: Compression, decompressor: Decompressor) -> None:
        decompressor.reset()
        with self._lock:
            free = self._free[kind]
            if len(free) < self._max_idle:
                free.append(decompressor)

    @contextmanager
    def get(self, kind: Compression) -> Iterator[Decompressor]:
        decompressor = self.acquire(kind)
        try:
            yield decompressor
        finally:
            self.release(kind, decompressor)


decompressor_pool = DecompressorPool()


class FetchResult(NamedTuple):
    spool: Spool
    fingerprint: str


class Fetcher:
    """
    Conditional GET of a single feed URL.

    Args:
        url: The feed location
        compression: Explicit codec, or AUTO to detect from the response
        name: Label used for logs, metrics and the spool prefix
        compare_date: Also treat a 200 whose Last-Modified equals the prior
            date as unchanged, for servers that ignore If-Modified-Since
    """

    def __init__(
        self,
        url: str,
        compression: Union[Compression, str] = Compression.AUTO,
        name: str = "",
        compare_date: bool = False,
    ):
        self.url = url
        self.compression = Compression.parse(compression)
        self.name = name or urlsplit(url).netloc
        self.compare_date = compare_date

    def _headers(self, prior: Fingerprint) -> Dict[str, str]:
        headers = {}
        if prior.etag:
            headers["If-None-Match"] = prior.etag
        if prior.date:
            headers["If-Modified-Since"] = prior.date
        return headers

    def _unchanged(self, response: httpx.Response, prior: Fingerprint) -> bool:
        if response.status_code == 304:
            return True
        etag = response.headers.get("etag", "")
        if prior.etag and etag == prior.etag:
            return True
        last_modified = response.headers.get("last-modified", "")
        return self.compare_date and bool(prior.date) and last_modified == prior.date

    async def fetch(self, client: httpx.AsyncClient, fingerprint: str = "") -> FetchResult:
        """
        Fetch the feed unless it is unchanged since ``fingerprint``.

        Returns:
            The spool, seeked to the start, and the new fingerprint

        Raises:
            Unchanged: The server reported no change
            FetchError: Network failure, unexpected status or corrupt body
        """
        prior = Fingerprint.parse(fingerprint)
        logger.debug(f"{self.name}: fetching {self.url}")
        try:
            async with client.stream("GET", self.url, headers=self._headers(prior)) as response:
                if self._unchanged(response, prior):
                    logger.info(f"{self.name}: database unchanged since last fetch")
                    feed_unchanged_total.labels(updater=self.name).inc()
                    raise Unchanged(fingerprint)
                check_response(response, self.name)

                kind = self.compression
                if kind is Compression.AUTO:
                    kind = detect_compression(response)
                    logger.debug(f"{self.name}: detected compression {kind.value}")

                new_fingerprint = Fingerprint(
                    etag=response.headers.get("etag", ""),
                    date=response.headers.get("last-modified", ""),
                ).dumps()
                spool = await self._spool(response, kind)
        except httpx.HTTPError as e:
            external_api_errors_total.labels(service=self.name).inc()
            raise FetchError(f"{self.name}: failed to retrieve {self.url}: {e}") from e

        logger.info(f"{self.name}: fetched {spool.size} bytes")
        return FetchResult(spool=spool, fingerprint=new_fingerprint)

    async def _spool(self, response: httpx.Response, kind: Compression) -> Spool:
        spool = Spool(prefix=f"{self.name}.")
        success = False
        try:
            with decompressor_pool.get(kind) as decompressor:
                async for chunk in response.aiter_bytes():
                    spool.write(decompressor.decompress(chunk))
                spool.write(decompressor.finish())
            spool.rewind()
            feed_bytes_spooled_total.labels(updater=self.name).inc(spool.size)
            success = True
            return spool
        except (OSError, EOFError, zlib.error, zstandard.ZstdError) as e:
            raise FetchError(f"{self.name}: failed to decompress body: {e}") from e
        finally:
            if not success:
                spool.close()
