import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from logline.ingest import ingest_line
from store import AggregationStore, StoreFrozenError


logger = logging.getLogger(__name__)


class FileStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class FileResult:
    path: Path
    status: FileStatus
    lines_read: int = 0
    lines_parsed: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FileStatus.OK


def ingest_file(
    path: Union[str, Path],
    store: AggregationStore,
    cancel: Optional[threading.Event] = None,
) -> FileResult:
    """
    Stream one file into the store, line by line, in file order.

    Open and read errors are logged and reported in the result instead
    of being raised; lines already counted stay counted.
    """
    path = Path(path)
    lines_read = 0
    lines_parsed = 0

    def result(status: FileStatus, error: Optional[str] = None) -> FileResult:
        return FileResult(
            path=path,
            status=status,
            lines_read=lines_read,
            lines_parsed=lines_parsed,
            error=error,
        )

    try:
        f = open(path, encoding="utf-8", newline="")
    except OSError as e:
        logger.warning("cannot open %s: %s", path, e)
        return result(FileStatus.FAILED, str(e))

    try:
        with f:
            for line in f:
                if cancel is not None and cancel.is_set():
                    logger.warning("cancelled %s after %d lines", path, lines_read)
                    return result(FileStatus.CANCELLED, "cancelled")

                store.record_line()
                lines_read += 1

                event = ingest_line(line)
                if event is None:
                    continue

                store.record_parsed(event.level, event.source, event.template)
                lines_parsed += 1

    except (OSError, UnicodeDecodeError) as e:
        status = FileStatus.PARTIAL if lines_read else FileStatus.FAILED
        logger.warning(
            "read error in %s after %d lines: %s", path, lines_read, e
        )
        return result(status, str(e))

    except StoreFrozenError:
        logger.warning("store frozen while reading %s", path)
        return result(FileStatus.CANCELLED, "store frozen")

    logger.debug("ingested %s: %d lines, %d parsed", path, lines_read, lines_parsed)
    return result(FileStatus.OK)
