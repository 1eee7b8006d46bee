"""
Blob Storage
============
The two operations the tracker needs from a storage backend:
``read_blob() -> bytes | None`` and ``write_blob(data) -> bool``.

Backends report failures through their return values and log the cause.
Deciding what a failed write means for the caller is the engine's job.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def read_blob(self) -> Optional[bytes]: ...

    def write_blob(self, data: bytes) -> bool: ...


# ---------------------------------------------------------------------------
# File backend
# ---------------------------------------------------------------------------

class FileBlobStore:
    """Stores the document in one file, replaced atomically on every write."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def read_blob(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read tracker data from %s: %s", self.path, exc)
            return None

    def write_blob(self, data: bytes) -> bool:
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Temp file in the same directory so os.replace stays on one filesystem.
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
            return True
        except OSError as exc:
            logger.error("Could not write tracker data to %s: %s", self.path, exc)
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Temp file %s already gone", tmp_name)


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------

class MemoryBlobStore:
    """Keeps the blob in process memory. Used by tests and embedders."""

    def __init__(self, initial: Optional[bytes] = None) -> None:
        self.data = initial
        self.write_count = 0

    def read_blob(self) -> Optional[bytes]:
        return self.data

    def write_blob(self, data: bytes) -> bool:
        self.data = data
        self.write_count += 1
        return True
