"""In-memory digest cache keyed by file path."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable

from tunedex.models import CacheRecord

LOGGER = logging.getLogger(__name__)


class HashCache:
    """Memoizes file digests together with the mtime they were computed at.

    A record is only served while the file's mtime is unchanged, so edits
    that preserve the mtime go unnoticed until a forced rehash.
    """

    def __init__(self, records: Dict[Path, CacheRecord] | None = None) -> None:
        self._records: Dict[Path, CacheRecord] = dict(records or {})

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        return path in self._records

    def get(self, path: Path) -> CacheRecord | None:
        return self._records.get(Path(path))

    def lookup(self, path: Path, mtime_ns: int | None = None) -> str | None:
        """Return the cached digest if the record matches the current mtime.

        When ``mtime_ns`` is omitted the file is stat'ed; a file that cannot
        be stat'ed counts as a miss.
        """
        record = self._records.get(Path(path))
        if record is None:
            return None
        if mtime_ns is None:
            try:
                mtime_ns = os.stat(path).st_mtime_ns
            except OSError:
                return None
        if record.mtime_ns != mtime_ns:
            LOGGER.debug("Stale cache record for %s", path)
            return None
        return record.digest

    def update(self, path: Path, digest: str, mtime_ns: int) -> None:
        self._records[Path(path)] = CacheRecord(digest=digest, mtime_ns=mtime_ns)

    def retain(self, paths: Iterable[Path]) -> int:
        """Drop records for every path not in ``paths``; return how many went."""
        keep = set(paths)
        stale = [path for path in self._records if path not in keep]
        for path in stale:
            del self._records[path]
        return len(stale)

    def copy(self) -> "HashCache":
        return HashCache(self._records)
