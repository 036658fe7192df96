"""Tests for file discovery and the ingest coordinator."""

import logging
import os
import threading
from pathlib import Path

import pytest

import coordinator as coordinator_module
from coordinator import (
    EnumerationError,
    IngestCoordinator,
    default_workers,
    discover_files,
)
from loggen import generate_logs
from worker import FileResult, FileStatus


GOOD = "2025-10-22T12:34:56Z [INFO] auth - User login success id=42"


class TestDiscoverFiles:
    """Tests for discover_files."""

    def test_finds_files_at_any_depth(self, write_log, tmp_path: Path) -> None:
        expected = {
            write_log("a.log", [GOOD]),
            write_log("x/b.txt", [GOOD]),
            write_log("x/y/z/c", [GOOD]),
        }
        (tmp_path / "empty-dir").mkdir()

        assert set(discover_files(tmp_path)) == expected

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(EnumerationError):
            discover_files(tmp_path / "nope")

    def test_file_root_raises(self, write_log) -> None:
        path = write_log("a.log", [GOOD])

        with pytest.raises(EnumerationError):
            discover_files(path)

    def test_enumeration_error_is_os_error(self) -> None:
        assert issubclass(EnumerationError, OSError)

    @pytest.mark.skipif(
        os.name != "posix" or os.geteuid() == 0,
        reason="needs POSIX permissions and a non-root user",
    )
    def test_unreadable_subdirectory_raises(self, write_log, tmp_path: Path) -> None:
        write_log("locked/a.log", [GOOD])
        locked = tmp_path / "locked"
        locked.chmod(0)
        try:
            with pytest.raises(EnumerationError):
                discover_files(tmp_path)
        finally:
            locked.chmod(0o755)


class TestIngestCoordinatorConfig:
    """Pool sizing."""

    def test_default_workers_has_floor_of_two(self, monkeypatch) -> None:
        monkeypatch.setattr(coordinator_module.os, "cpu_count", lambda: 1)
        assert default_workers() == 2

        monkeypatch.setattr(coordinator_module.os, "cpu_count", lambda: None)
        assert default_workers() == 2

        monkeypatch.setattr(coordinator_module.os, "cpu_count", lambda: 12)
        assert default_workers() == 12

    def test_uses_default_when_unset(self) -> None:
        assert IngestCoordinator().workers == default_workers()

    @pytest.mark.parametrize("workers", [0, -3])
    def test_rejects_non_positive_workers(self, workers: int) -> None:
        with pytest.raises(ValueError):
            IngestCoordinator(workers=workers)

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError):
            IngestCoordinator(shutdown_timeout=0)


class TestIngestCoordinatorRun:
    """Tests for IngestCoordinator.run."""

    def test_aggregates_across_files(self, write_log, tmp_path: Path) -> None:
        write_log("a.log", [GOOD, "garbage line with no structure"])
        write_log(
            "nested/b.log",
            [
                "2025-10-22T12:35:00Z [ERROR] db - timeout after 5000 ms",
                "2025-10-22T12:35:01Z [ERROR] db - timeout after 30 ms",
            ],
        )

        result = IngestCoordinator(workers=2).run(tmp_path)
        snap = result.store.snapshot()

        assert result.store.frozen
        assert result.files_ok == 2
        assert snap.total_lines == 4
        assert dict(snap.level_counts) == {"INFO": 1, "ERROR": 2}
        assert dict(snap.source_counts) == {"auth": 1, "db": 2}
        assert snap.top_messages(1) == [("timeout after <NUM> ms", 2)]

    def test_empty_root(self, tmp_path: Path) -> None:
        result = IngestCoordinator(workers=2).run(tmp_path)

        assert result.files == []
        assert result.store.snapshot().total_lines == 0

    def test_missing_root_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(EnumerationError):
            IngestCoordinator(workers=2).run(tmp_path / "nope")

    def test_bad_file_does_not_stop_the_run(
        self, write_log, tmp_path: Path, caplog
    ) -> None:
        write_log("good.log", [GOOD, GOOD])
        (tmp_path / "bad.log").write_bytes(b"\xff\xfe\xfd\n")

        with caplog.at_level(logging.WARNING):
            result = IngestCoordinator(workers=2).run(tmp_path)
        snap = result.store.snapshot()

        assert result.files_ok == 1
        assert result.files_failed == 1
        assert snap.total_lines == 2
        assert "bad.log" in caplog.text

    def test_unopenable_file_in_list_is_counted_as_failed(
        self, write_log, tmp_path: Path
    ) -> None:
        good = write_log("good.log", [GOOD])

        result = IngestCoordinator(workers=2).run_files([good, tmp_path / "gone.log"])

        assert result.files_ok == 1
        assert result.files_failed == 1
        assert result.store.snapshot().total_lines == 1

    def test_one_worker_and_many_workers_agree(self, tmp_path: Path) -> None:
        """Counts do not depend on scheduling or file order."""
        generate_logs(tmp_path, files=12, lines_per_file=400, garbage_ratio=0.1, seed=7)

        single = IngestCoordinator(workers=1).run(tmp_path).store.snapshot()
        many = IngestCoordinator(workers=8).run(tmp_path).store.snapshot()

        assert single.total_lines == many.total_lines == 12 * 400
        assert dict(single.level_counts) == dict(many.level_counts)
        assert dict(single.source_counts) == dict(many.source_counts)
        assert dict(single.message_counts) == dict(many.message_counts)
        assert single.top_messages(5) == many.top_messages(5)
        assert single.parsed_lines < single.total_lines

    def test_crashing_worker_is_recorded_as_failed(
        self, write_log, tmp_path: Path, monkeypatch
    ) -> None:
        write_log("a.log", [GOOD])

        def explode(path, store, cancel):
            raise RuntimeError("boom")

        monkeypatch.setattr(coordinator_module, "ingest_file", explode)

        result = IngestCoordinator(workers=2).run(tmp_path)

        assert result.files_failed == 1
        assert result.files[0].error == "boom"

    def test_hung_worker_is_abandoned_after_timeout(
        self, write_log, tmp_path: Path, monkeypatch, caplog
    ) -> None:
        write_log("slow.log", [GOOD])
        write_log("fast.log", [GOOD])
        release = threading.Event()

        def maybe_hang(path, store, cancel):
            if path.name == "slow.log":
                release.wait(5)
                return FileResult(path=path, status=FileStatus.OK)
            store.record_line()
            return FileResult(path=path, status=FileStatus.OK, lines_read=1)

        monkeypatch.setattr(coordinator_module, "ingest_file", maybe_hang)

        try:
            with caplog.at_level(logging.WARNING):
                result = IngestCoordinator(workers=2, shutdown_timeout=0.2).run(
                    tmp_path
                )
        finally:
            release.set()

        statuses = {r.path.name: r.status for r in result.files}
        assert statuses == {"fast.log": FileStatus.OK, "slow.log": FileStatus.CANCELLED}
        assert result.store.frozen
        assert result.store.snapshot().total_lines == 1
        assert "abandoned" in caplog.text
        slow = next(r for r in result.files if r.path.name == "slow.log")
        assert "stay counted" in slow.error
