"""Read-only queries over a published index."""

from __future__ import annotations

import random
from pathlib import Path
from typing import List, Mapping

from tunedex.models import AudioFile
from tunedex.utils.files import display_path, mime_for_path


def to_audio_file(digest: str, path: Path) -> AudioFile:
    return AudioFile(id=digest, path=display_path(path), mime=mime_for_path(path))


def lookup_by_digest(index: Mapping[str, Path], digest: str) -> Path | None:
    return index.get(digest.lower())


def list_files(index: Mapping[str, Path]) -> List[AudioFile]:
    """Every entry of the index, ordered by path."""
    entries = sorted(index.items(), key=lambda item: item[1])
    return [to_audio_file(digest, path) for digest, path in entries]


def random_entry(
    index: Mapping[str, Path], rng: random.Random | None = None
) -> AudioFile | None:
    """Pick one entry uniformly at random, or None for an empty index."""
    if not index:
        return None
    digest = (rng or random).choice(list(index))
    return to_audio_file(digest, index[digest])
