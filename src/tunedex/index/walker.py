"""Audio file discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from tunedex.errors import DirectoryUnreadable, EntryUnreadable
from tunedex.models import FileEntry
from tunedex.utils.files import is_audio_file

LOGGER = logging.getLogger(__name__)

ErrorCallback = Callable[[EntryUnreadable], None]


def _log_unreadable(error: EntryUnreadable) -> None:
    LOGGER.warning("Skipping %s", error)


def walk_audio_files(
    root: Path | str, *, on_error: Optional[ErrorCallback] = None
) -> list[FileEntry]:
    """Collect every audio file below ``root``.

    Directories are expanded from an explicit stack rather than by recursion.
    Symlinks and special files are ignored. Subdirectories or entries that
    cannot be read are reported to ``on_error`` and skipped.

    Raises:
        DirectoryUnreadable: if ``root`` itself cannot be listed.
    """
    report = on_error or _log_unreadable
    root = Path(os.path.abspath(root))
    found: list[FileEntry] = []
    pending: list[Path] = [root]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            if directory == root:
                raise DirectoryUnreadable(root, exc) from exc
            report(EntryUnreadable(directory, exc))
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    pending.append(Path(entry.path))
                elif entry.is_file(follow_symlinks=False) and is_audio_file(entry.name):
                    mtime_ns = entry.stat(follow_symlinks=False).st_mtime_ns
                    found.append(FileEntry(path=Path(entry.path), mtime_ns=mtime_ns))
            except OSError as exc:
                report(EntryUnreadable(entry.path, exc))

    found.sort(key=lambda item: item.path)
    return found
