from typing import Optional

from .normalize import normalize
from .parsers import parse_line
from .types import LogEvent


def ingest_line(line: str) -> Optional[LogEvent]:
    """
    Ingest a single raw log line and convert it into a LogEvent.

    Pipeline:
      raw line
        → line parser
          → message normalization
            → LogEvent

    Returns None for lines that do not parse.
    """
    record = parse_line(line)
    if record is None:
        return None

    return LogEvent(
        timestamp=record.timestamp,
        level=record.level,
        source=record.source,
        template=normalize(record.message),
    )
