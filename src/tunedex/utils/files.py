"""Utility helpers for classifying and hashing audio files."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Iterable, Iterator

from tunedex.errors import HashIoError

AUDIO_EXTENSIONS = frozenset({"m4b", "m4a", "mp3", "flac", "wav", "opus"})
HASH_CHUNK_SIZE = 1 << 20


def _extension(path: Path | str) -> str:
    return Path(path).suffix[1:]


def is_audio_file(path: Path | str) -> bool:
    """Return True if the path carries a whitelisted audio extension.

    The check is case-sensitive and looks at the extension only.
    """
    return _extension(path) in AUDIO_EXTENSIONS


def extension_to_mime(extension: str) -> str:
    """Map an audio extension (with or without the dot) to its MIME type."""
    extension = extension.lstrip(".")
    if extension in ("m4b", "m4a"):
        return "audio/mp4"
    return f"audio/{extension}"


def mime_for_path(path: Path | str) -> str:
    return extension_to_mime(_extension(path))


def display_path(path: Path | str) -> str:
    """Render a path as valid UTF-8, replacing undecodable bytes."""
    return os.fsencode(path).decode("utf-8", "replace")


def _new_hasher():
    return hashlib.md5(usedforsecurity=False)


def hash_chunks(chunks: Iterable[bytes]) -> bytes:
    """Digest the concatenation of ``chunks``.

    Feeding the same bytes split at different boundaries yields the same digest.
    """
    hasher = _new_hasher()
    for chunk in chunks:
        hasher.update(chunk)
    return hasher.digest()


def _iter_file_chunks(path: Path, chunk_size: int) -> Iterator[bytes]:
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(chunk_size), b""):
            yield chunk


def hash_file(path: Path, *, chunk_size: int = HASH_CHUNK_SIZE) -> bytes:
    """Stream ``path`` in ``chunk_size`` reads and return its raw digest.

    Raises:
        ValueError: if ``chunk_size`` is smaller than one byte.
        HashIoError: if the file cannot be opened or read to the end.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")
    try:
        return hash_chunks(_iter_file_chunks(Path(path), chunk_size))
    except OSError as exc:
        raise HashIoError(path, exc) from exc


def compute_digest(path: Path, *, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """Compute the lowercase hex content identifier for a file."""
    return hash_file(path, chunk_size=chunk_size).hex()
