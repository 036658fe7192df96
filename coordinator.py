import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from store import AggregationStore
from worker import FileResult, FileStatus, ingest_file


logger = logging.getLogger(__name__)


DEFAULT_SHUTDOWN_TIMEOUT = 60.0
MIN_WORKERS = 2


class EnumerationError(OSError):
    """Raised when the input root cannot be walked. Fatal for the run."""


def default_workers() -> int:
    return max(MIN_WORKERS, os.cpu_count() or 1)


# ---------- Discovery ----------

def discover_files(root: Union[str, Path]) -> List[Path]:
    """
    List every regular file under root, at any depth, without
    extension filtering.

    Any error while walking the tree is fatal and raised as
    EnumerationError.
    """
    root = Path(root)
    if not root.exists():
        raise EnumerationError(f"input root does not exist: {root}")
    if not root.is_dir():
        raise EnumerationError(f"input root is not a directory: {root}")

    def on_error(err: OSError):
        raise EnumerationError(f"cannot read {err.filename}: {err.strerror}") from err

    files: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_file():
                files.append(path)

    return files


# ---------- Result ----------

@dataclass
class IngestResult:
    store: AggregationStore
    files: List[FileResult] = field(default_factory=list)
    elapsed: float = 0.0

    def count(self, status: FileStatus) -> int:
        return sum(1 for r in self.files if r.status is status)

    @property
    def files_ok(self) -> int:
        return self.count(FileStatus.OK)

    @property
    def files_partial(self) -> int:
        return self.count(FileStatus.PARTIAL)

    @property
    def files_failed(self) -> int:
        return self.count(FileStatus.FAILED)

    @property
    def files_cancelled(self) -> int:
        return self.count(FileStatus.CANCELLED)


# ---------- Coordinator ----------

class IngestCoordinator:
    """
    Fans files out to a fixed-size thread pool and waits for all of them.

    One file is one unit of work. Per-file failures only reduce coverage;
    the run fails only if the input root cannot be enumerated.
    """

    def __init__(
        self,
        workers: Optional[int] = None,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ):
        if workers is None:
            workers = default_workers()
        if workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")
        if shutdown_timeout <= 0:
            raise ValueError(
                f"shutdown_timeout must be positive, got {shutdown_timeout}"
            )

        self.workers = workers
        self.shutdown_timeout = shutdown_timeout

    def run(
        self,
        root: Union[str, Path],
        store: Optional[AggregationStore] = None,
    ) -> IngestResult:
        files = discover_files(root)
        return self.run_files(files, store=store)

    def run_files(
        self,
        files: List[Path],
        store: Optional[AggregationStore] = None,
    ) -> IngestResult:
        store = store if store is not None else AggregationStore()
        cancel = threading.Event()
        results: List[FileResult] = []

        logger.info("ingesting %d files with %d workers", len(files), self.workers)
        start = time.monotonic()

        executor = ThreadPoolExecutor(
            max_workers=self.workers,
            thread_name_prefix="ingest",
        )
        try:
            futures: Dict[Future, Path] = {
                executor.submit(ingest_file, path, store, cancel): path
                for path in files
            }

            done, pending = wait(futures, timeout=self.shutdown_timeout)

            for future in done:
                results.append(self._collect(future, futures[future]))

            if pending:
                cancel.set()
                logger.warning(
                    "%d files still running after %.1fs, giving up on them",
                    len(pending),
                    self.shutdown_timeout,
                )
                for future in pending:
                    future.cancel()
                    path = futures[future]
                    logger.warning(
                        "abandoned %s; lines it already read stay counted", path
                    )
                    results.append(
                        FileResult(
                            path=path,
                            status=FileStatus.CANCELLED,
                            error="timed out; lines read before the timeout stay counted",
                        )
                    )
        finally:
            # stragglers see the cancel event; do not block on them
            executor.shutdown(wait=not cancel.is_set(), cancel_futures=True)
            store.freeze()

        elapsed = time.monotonic() - start
        result = IngestResult(store=store, files=results, elapsed=elapsed)

        logger.info(
            "ingest finished in %.2fs: %d ok, %d partial, %d failed, %d cancelled",
            elapsed,
            result.files_ok,
            result.files_partial,
            result.files_failed,
            result.files_cancelled,
        )
        return result

    @staticmethod
    def _collect(future: Future, path: Path) -> FileResult:
        try:
            return future.result()
        except Exception as e:
            logger.exception("worker for %s crashed", path)
            return FileResult(path=path, status=FileStatus.FAILED, error=str(e))
