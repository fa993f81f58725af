"""
Spool files

A spool holds a decompressed feed between the fetch and parse steps. It
is an anonymous temporary file: the directory entry is removed at
creation, so closing the spool releases the storage on every path.
"""

import logging
import tempfile
from typing import IO, Optional

from vulnfeed.core.config import settings

logger = logging.getLogger(__name__)


class Spool:
    """Binary file owned by whoever holds it; close() releases it."""

    def __init__(self, prefix: str = "vulnfeed.", directory: Optional[str] = None):
        self.prefix = prefix
        self._file: IO[bytes] = tempfile.TemporaryFile(
            prefix=prefix, dir=directory or settings.SPOOL_DIR
        )
        self.size = 0

    def write(self, data: bytes) -> int:
        n = self._file.write(data)
        self.size += n
        return n

    def read(self, size: int = -1) -> bytes:
        return self._file.read(size)

    def readline(self, size: int = -1) -> bytes:
        return self._file.readline(size)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def rewind(self) -> "Spool":
        self._file.seek(0)
        return self

    @property
    def file(self) -> IO[bytes]:
        """The underlying buffered file, for wrappers such as io.TextIOWrapper."""
        return self._file

    def fileno(self) -> int:
        return self._file.fileno()

    def readable(self) -> bool:
        return True

    def __iter__(self):
        return iter(self._file)

    @property
    def closed(self) -> bool:
        return self._file.closed

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "Spool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
