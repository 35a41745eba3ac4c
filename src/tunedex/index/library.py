"""Published, copy-on-write view of a scanned audio library."""

from __future__ import annotations

import logging
import os
import random
import threading
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping

from tunedex.index.cache import HashCache
from tunedex.index.indexer import Indexer
from tunedex.index.search import list_files, lookup_by_digest, random_entry
from tunedex.models import AudioFile, AudioIndex, ScanResult

LOGGER = logging.getLogger(__name__)


class Library:
    """Holds the latest complete scan of ``base_dir``.

    Scans are serialized by ``_scan_lock``. Each scan builds a new index and
    cache off to the side; they are swapped in together under
    ``_snapshot_lock``, so readers never see a half-merged index.
    """

    def __init__(self, base_dir: Path | str, indexer: Indexer | None = None) -> None:
        self.base_dir = Path(os.path.abspath(base_dir))
        self.indexer = indexer if indexer is not None else Indexer()
        self._scan_lock = threading.Lock()
        self._snapshot_lock = threading.Lock()
        self._index: AudioIndex = {}
        self._cache = HashCache()
        self._last_result: ScanResult | None = None
        self.generation = 0

    def rescan(self, *, force: bool = False) -> ScanResult:
        """Scan ``base_dir`` and publish the result once it is complete."""
        with self._scan_lock:
            result = self.indexer.scan(self.base_dir, self._cache, force=force)
            with self._snapshot_lock:
                self._index = dict(result.index)
                self._cache = result.cache
                self._last_result = result
                self.generation += 1
            LOGGER.debug("Published scan %d: %s", self.generation, result.stats.as_dict())
            return result

    def snapshot(self) -> Mapping[str, Path]:
        with self._snapshot_lock:
            return MappingProxyType(self._index)

    @property
    def cache(self) -> HashCache:
        with self._snapshot_lock:
            return self._cache

    @property
    def last_result(self) -> ScanResult | None:
        with self._snapshot_lock:
            return self._last_result

    def lookup(self, digest: str) -> Path | None:
        return lookup_by_digest(self.snapshot(), digest)

    def list_files(self) -> List[AudioFile]:
        return list_files(self.snapshot())

    def random_file(self, rng: random.Random | None = None) -> AudioFile | None:
        return random_entry(self.snapshot(), rng)

    def close(self) -> None:
        self.indexer.close()
