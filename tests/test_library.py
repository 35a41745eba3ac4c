"""Tests for the published library snapshot."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from tunedex.errors import DirectoryUnreadable
from tunedex.index.indexer import Indexer
from tunedex.index.library import Library
from tunedex.utils.files import compute_digest


@pytest.fixture
def music(tmp_path: Path) -> Path:
    root = tmp_path / "music"
    (root / "album").mkdir(parents=True)
    (root / "album" / "one.mp3").write_bytes(b"one")
    (root / "two.m4a").write_bytes(b"two")
    (root / "notes.txt").write_bytes(b"not audio")
    return root


@pytest.fixture
def library(music: Path):
    lib = Library(music, Indexer(workers=2))
    yield lib
    lib.close()


class TestLibrary:
    """Test Library publication and queries."""

    def test_empty_before_first_scan(self, library: Library) -> None:
        """Should expose an empty index until a scan completes."""
        assert library.list_files() == []
        assert library.random_file() is None
        assert library.last_result is None
        assert library.generation == 0

    def test_rescan_publishes_index(self, library: Library, music: Path) -> None:
        """Should publish the scanned index."""
        result = library.rescan()

        assert library.generation == 1
        assert library.last_result is result
        assert dict(library.snapshot()) == result.index
        assert [Path(f.path).name for f in library.list_files()] == ["one.mp3", "two.m4a"]

    def test_caller_cannot_mutate_published_index(self, library: Library) -> None:
        """Should publish a private copy of the scanned index."""
        result = library.rescan()
        published = dict(library.snapshot())

        result.index.clear()
        result.index["0" * 32] = Path("/nope.mp3")

        assert dict(library.snapshot()) == published
        assert library.lookup("0" * 32) is None

    def test_rescan_logs_stats(
        self, library: Library, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Should log the scan statistics when publishing."""
        with caplog.at_level(logging.DEBUG, logger="tunedex.index.library"):
            library.rescan()

        assert "Published scan 1" in caplog.text
        assert "'walked': 2" in caplog.text
        assert "'hashed': 2" in caplog.text

    def test_lookup(self, library: Library, music: Path) -> None:
        """Should resolve a digest to its path."""
        library.rescan()
        path = music / "two.m4a"

        assert library.lookup(compute_digest(path)) == path
        assert library.lookup("0" * 32) is None

    def test_random_file(self, library: Library) -> None:
        """Should return one of the indexed files."""
        library.rescan()

        entry = library.random_file()

        assert entry is not None
        assert entry.id in library.snapshot()

    def test_snapshot_is_read_only(self, library: Library) -> None:
        """Should not let callers mutate the published index."""
        library.rescan()

        with pytest.raises(TypeError):
            library.snapshot()["x"] = Path("/nope")  # type: ignore[index]

    def test_old_snapshot_unchanged_by_rescan(self, library: Library, music: Path) -> None:
        """Should leave previously handed-out snapshots intact."""
        library.rescan()
        before = library.snapshot()
        (music / "three.flac").write_bytes(b"three")

        library.rescan()

        assert len(before) == 2
        assert len(library.snapshot()) == 3

    def test_rescan_reuses_cache(self, library: Library) -> None:
        """Should not rehash unchanged files on rescan."""
        library.rescan()

        with patch(
            "tunedex.index.indexer.compute_digest", wraps=compute_digest
        ) as digest_mock:
            result = library.rescan()

        assert digest_mock.call_count == 0
        assert result.stats.cached == 2

    def test_force_rescan(self, library: Library) -> None:
        """Should rehash everything when forced."""
        library.rescan()

        result = library.rescan(force=True)

        assert result.stats.hashed == 2
        assert result.stats.cached == 0

    def test_failed_rescan_keeps_previous_snapshot(
        self, library: Library, music: Path
    ) -> None:
        """Should keep serving the last good index when a rescan fails."""
        library.rescan()
        before = dict(library.snapshot())

        with patch.object(
            library.indexer, "scan", side_effect=DirectoryUnreadable(music, OSError(5, "I/O error"))
        ):
            with pytest.raises(DirectoryUnreadable):
                library.rescan()

        assert dict(library.snapshot()) == before
        assert library.generation == 1

    def test_readers_see_complete_snapshots(self, library: Library, music: Path) -> None:
        """Should let readers run during a scan and only see whole indexes."""
        library.rescan()
        old = dict(library.snapshot())
        started = threading.Event()
        release = threading.Event()
        real_scan = library.indexer.scan

        def slow_scan(*args, **kwargs):
            started.set()
            release.wait(timeout=5)
            return real_scan(*args, **kwargs)

        (music / "three.flac").write_bytes(b"three")
        with patch.object(library.indexer, "scan", side_effect=slow_scan):
            worker = threading.Thread(target=library.rescan)
            worker.start()
            assert started.wait(timeout=5)

            assert dict(library.snapshot()) == old

            release.set()
            worker.join(timeout=5)

        assert len(library.snapshot()) == 3

    def test_scans_are_serialized(self, library: Library) -> None:
        """Should never run two scans at the same time."""
        active = 0
        overlap = False
        guard = threading.Lock()
        real_scan = library.indexer.scan

        def tracking_scan(*args, **kwargs):
            nonlocal active, overlap
            with guard:
                active += 1
                overlap = overlap or active > 1
            try:
                return real_scan(*args, **kwargs)
            finally:
                with guard:
                    active -= 1

        with patch.object(library.indexer, "scan", side_effect=tracking_scan):
            threads = [threading.Thread(target=library.rescan) for _ in range(4)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join(timeout=10)

        assert not overlap
        assert library.generation == 4
