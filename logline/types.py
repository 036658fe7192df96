from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Record:
    """
    One parsed log line.

    Fields are extracted verbatim, except the timestamp which is
    parsed into an aware UTC datetime.
    """
    timestamp: datetime
    level: str
    source: str
    message: str


@dataclass(frozen=True)
class LogEvent:
    """
    Canonical event consumed by the file workers.

    The message is already normalized into a template; the raw text
    is not kept so events stay cheap to create and discard.
    """
    timestamp: datetime
    level: str
    source: str
    template: str
