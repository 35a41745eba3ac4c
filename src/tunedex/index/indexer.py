"""Audio library scanning pipeline."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, wait
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence, TypeVar

from tunedex.errors import EntryUnreadable, HashIoError, TunedexError
from tunedex.index.cache import HashCache
from tunedex.index.walker import walk_audio_files
from tunedex.models import AudioIndex, Duplicate, FileEntry, ScanResult, ScanStats
from tunedex.utils.files import HASH_CHUNK_SIZE, compute_digest

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class HashFailurePolicy(str, Enum):
    """What a scan does when a file cannot be hashed."""

    SKIP = "skip"
    ABORT = "abort"


class ScanState(str, Enum):
    IDLE = "idle"
    WALKING = "walking"
    PARTITIONING = "partitioning"
    HASHING = "hashing"
    MERGING = "merging"


def default_worker_count() -> int:
    """One hashing worker per logical core, leaving one core free."""
    return max(1, (os.cpu_count() or 2) - 1)


def partition(items: Sequence[T], parts: int) -> list[list[T]]:
    """Split ``items`` into ``parts`` contiguous slices.

    Slice sizes differ by at most one; every item lands in exactly one slice.
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")
    size, extra = divmod(len(items), parts)
    slices: list[list[T]] = []
    start = 0
    for i in range(parts):
        end = start + size + (1 if i < extra else 0)
        slices.append(list(items[start:end]))
        start = end
    return slices


def merge_pairs(pairs: Iterable[tuple[str, Path]]) -> tuple[AudioIndex, list[Duplicate]]:
    """Build a digest -> path index, first path (in sort order) wins.

    Paths whose digest is already taken are returned as duplicates.
    """
    index: AudioIndex = {}
    duplicates: list[Duplicate] = []
    for digest, path in sorted(pairs, key=lambda pair: pair[1]):
        kept = index.setdefault(digest, path)
        if kept != path:
            LOGGER.warning("Duplicate content %s: keeping %s, dropping %s", digest, kept, path)
            duplicates.append(Duplicate(digest=digest, kept=kept, dropped=path))
    return index, duplicates


def _hash_partition(
    entries: Sequence[FileEntry], chunk_size: int
) -> tuple[list[tuple[str, FileEntry]], list[HashIoError]]:
    hashed: list[tuple[str, FileEntry]] = []
    failures: list[HashIoError] = []
    for entry in entries:
        try:
            hashed.append((compute_digest(entry.path, chunk_size=chunk_size), entry))
        except HashIoError as exc:
            failures.append(exc)
    return hashed, failures


class Indexer:
    """Coordinates walking, cache lookups, parallel hashing and merging.

    The hashing pool is created on first use and reused by later scans. An
    ``Indexer`` runs one scan at a time; callers sharing one serialize access.
    """

    def __init__(
        self,
        workers: int | None = None,
        *,
        chunk_size: int = HASH_CHUNK_SIZE,
        on_hash_error: HashFailurePolicy = HashFailurePolicy.SKIP,
    ) -> None:
        self.workers = workers if workers is not None else default_worker_count()
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        self.chunk_size = chunk_size
        self.on_hash_error = HashFailurePolicy(on_hash_error)
        self.state = ScanState.IDLE
        self._pool: ThreadPoolExecutor | None = None

    def __enter__(self) -> "Indexer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    def _executor(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="tunedex-hash"
            )
        return self._pool

    def scan(
        self,
        root: Path | str,
        previous_cache: HashCache | None = None,
        *,
        force: bool = False,
    ) -> ScanResult:
        """Index every audio file under ``root``.

        ``previous_cache`` is left untouched; the result carries an updated
        copy. With ``force`` every file is rehashed regardless of the cache.

        Raises:
            DirectoryUnreadable: if ``root`` cannot be listed.
            HashIoError: if a file cannot be hashed and the policy is ABORT.
        """
        started = time.perf_counter()
        stats = ScanStats()
        errors: list[TunedexError] = []

        def record_unreadable(error: EntryUnreadable) -> None:
            LOGGER.warning("Skipping %s", error)
            stats.unreadable += 1
            errors.append(error)

        try:
            self.state = ScanState.WALKING
            entries = walk_audio_files(root, on_error=record_unreadable)
            stats.walked = len(entries)

            self.state = ScanState.PARTITIONING
            cache = previous_cache.copy() if previous_cache is not None else HashCache()
            pairs: list[tuple[str, Path]] = []
            to_hash: list[FileEntry] = []
            for entry in entries:
                digest = None if force else cache.lookup(entry.path, entry.mtime_ns)
                if digest is None:
                    to_hash.append(entry)
                else:
                    pairs.append((digest, entry.path))
            stats.cached = len(pairs)

            self.state = ScanState.HASHING
            hashed, failures = self._hash_all(to_hash)

            self.state = ScanState.MERGING
            if failures and self.on_hash_error is HashFailurePolicy.ABORT:
                raise failures[0]
            for failure in failures:
                LOGGER.warning("%s", failure)
            stats.failed = len(failures)
            errors.extend(failures)

            for digest, entry in hashed:
                cache.update(entry.path, digest, entry.mtime_ns)
                pairs.append((digest, entry.path))
            stats.hashed = len(hashed)
            stats.pruned = cache.retain(entry.path for entry in entries)

            index, duplicates = merge_pairs(pairs)
            stats.duplicates = len(duplicates)
        finally:
            self.state = ScanState.IDLE

        stats.elapsed = time.perf_counter() - started
        LOGGER.info(
            "Scanned %s in %.3fs: %d files, %d cached, %d hashed, %d failed",
            root,
            stats.elapsed,
            stats.walked,
            stats.cached,
            stats.hashed,
            stats.failed,
        )
        return ScanResult(
            index=index, cache=cache, stats=stats, errors=errors, duplicates=duplicates
        )

    def _hash_all(
        self, entries: Sequence[FileEntry]
    ) -> tuple[list[tuple[str, FileEntry]], list[HashIoError]]:
        if not entries:
            return [], []

        pool = self._executor()
        futures = [
            pool.submit(_hash_partition, chunk, self.chunk_size)
            for chunk in partition(entries, self.workers)
            if chunk
        ]
        wait(futures)

        hashed: list[tuple[str, FileEntry]] = []
        failures: list[HashIoError] = []
        for future in futures:
            chunk_hashed, chunk_failures = future.result()
            hashed.extend(chunk_hashed)
            failures.extend(chunk_failures)
        return hashed, failures
