"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from tunedex.index.indexer import HashFailurePolicy, default_worker_count
from tunedex.utils.files import HASH_CHUNK_SIZE

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 65421


@dataclass(slots=True)
class AppConfig:
    base_dir: Path | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    workers: int | None = None
    chunk_size: int = HASH_CHUNK_SIZE
    on_hash_error: HashFailurePolicy = HashFailurePolicy.SKIP

    def resolve_base_dir(self) -> Path:
        if self.base_dir is None:
            raise ValueError("No music directory configured")
        return Path(os.path.abspath(Path(self.base_dir).expanduser()))

    def resolve_workers(self) -> int:
        if self.workers is None:
            return default_worker_count()
        return max(1, self.workers)
