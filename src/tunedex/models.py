"""Core tunedex data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict

from tunedex.errors import TunedexError

if TYPE_CHECKING:
    from tunedex.index.cache import HashCache

# digest -> path, rebuilt on every scan and never mutated once published
AudioIndex = Dict[str, Path]


@dataclass(frozen=True, slots=True)
class FileEntry:
    """Audio file found by the walker, with the mtime seen at that moment."""

    path: Path
    mtime_ns: int


@dataclass(frozen=True, slots=True)
class CacheRecord:
    """Digest of a file and the mtime in effect when it was computed."""

    digest: str
    mtime_ns: int


@dataclass(frozen=True, slots=True)
class AudioFile:
    """Index entry as exposed to callers."""

    id: str
    path: str
    mime: str


@dataclass(frozen=True, slots=True)
class Duplicate:
    """A path dropped from the index because another path holds its digest."""

    digest: str
    kept: Path
    dropped: Path


@dataclass(slots=True)
class ScanStats:
    walked: int = 0
    cached: int = 0
    hashed: int = 0
    failed: int = 0
    duplicates: int = 0
    unreadable: int = 0
    pruned: int = 0
    elapsed: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            "walked": self.walked,
            "cached": self.cached,
            "hashed": self.hashed,
            "failed": self.failed,
            "duplicates": self.duplicates,
            "unreadable": self.unreadable,
            "pruned": self.pruned,
            "elapsed": self.elapsed,
        }


@dataclass(slots=True)
class ScanResult:
    """Outcome of one scan: the new index and cache plus what went wrong."""

    index: AudioIndex
    cache: HashCache
    stats: ScanStats = field(default_factory=ScanStats)
    errors: list[TunedexError] = field(default_factory=list)
    duplicates: list[Duplicate] = field(default_factory=list)
