import re
from datetime import datetime, timezone
from typing import Optional

from .types import Record


class TimestampError(ValueError):
    """Raised when a timestamp token is not a valid ISO-8601 UTC instant."""


# -----------------------------
# LINE SHAPE
# -----------------------------

LINE_RE = re.compile(
    r"""
    ^
    (?P<ts>[0-9\-:.TZ]+)        # loose timestamp token
    \ \[(?P<level>[A-Za-z0-9_]+)\]
    \ (?P<source>\S+)
    \ -\ (?P<msg>.*)
    $
    """,
    re.VERBOSE | re.DOTALL,
)

# date, time and Z are all required; fraction is optional
INSTANT_RE = re.compile(
    r"^(?P<base>[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2})"
    r"(?:\.(?P<frac>[0-9]{1,9}))?Z$"
)


# -----------------------------
# TIMESTAMP
# -----------------------------

def parse_timestamp(token: str) -> datetime:
    """
    Parse a strict ISO-8601 instant like 2025-10-22T12:34:56.123Z.

    Digits beyond microsecond precision are truncated.
    Raises TimestampError on anything else.
    """
    m = INSTANT_RE.match(token)
    if not m:
        raise TimestampError(f"not an ISO-8601 UTC instant: {token!r}")

    try:
        timestamp = datetime.strptime(m.group("base"), "%Y-%m-%dT%H:%M:%S")
    except ValueError as e:
        raise TimestampError(f"invalid date or time: {token!r}") from e

    frac = m.group("frac")
    if frac:
        timestamp = timestamp.replace(microsecond=int(frac[:6].ljust(6, "0")))

    return timestamp.replace(tzinfo=timezone.utc)


# -----------------------------
# LINE PARSER
# -----------------------------

def parse_line(line: str) -> Optional[Record]:
    """
    Parse logs like:
      2025-10-22T12:34:56Z [INFO] auth - User login success id=42

    Returns None when the line does not have that shape or when the
    timestamp is not a real instant. It should NEVER throw.
    """
    m = LINE_RE.match(line.rstrip("\r\n"))
    if not m:
        return None

    try:
        timestamp = parse_timestamp(m.group("ts"))
    except TimestampError:
        return None

    return Record(
        timestamp=timestamp,
        level=m.group("level"),
        source=m.group("source"),
        message=m.group("msg"),
    )
