"""Error kinds raised while scanning an audio library."""

from __future__ import annotations

from pathlib import Path


class TunedexError(Exception):
    """Base class for scan failures tied to a filesystem path."""

    def __init__(self, path: Path | str, cause: OSError | None = None) -> None:
        self.path = Path(path)
        self.cause = cause
        detail = f": {cause.strerror or cause}" if cause is not None else ""
        super().__init__(f"{self.describe()} {self.path}{detail}")

    def describe(self) -> str:
        return "Filesystem error at"


class DirectoryUnreadable(TunedexError):
    """The scan root itself could not be listed. Aborts the scan."""

    def describe(self) -> str:
        return "Cannot list directory"


class EntryUnreadable(TunedexError):
    """A nested directory or entry could not be accessed; it is skipped."""

    def describe(self) -> str:
        return "Cannot access entry"


class HashIoError(TunedexError):
    """A file selected for hashing could not be opened or fully read."""

    def describe(self) -> str:
        return "Cannot hash file"
