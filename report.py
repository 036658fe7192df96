from typing import List, Tuple

from coordinator import IngestResult
from store import Snapshot


RULE = "─" * 60


def _table(title: str, rows: List[Tuple[str, int]]) -> List[str]:
    lines = [f"\n{title}"]
    if not rows:
        lines.append("  (none)")
        return lines

    width = max(len(str(count)) for _, count in rows)
    for key, count in rows:
        lines.append(f"  {count:>{width}}  {key}")
    return lines


def render_report(result: IngestResult, snapshot: Snapshot, top: int) -> str:
    """Render a finished run as plain text. No counting happens here."""
    lines = [
        "Ingestion summary",
        f"  Files        : {len(result.files)}",
        f"    ok         : {result.files_ok}",
        f"    partial    : {result.files_partial}",
        f"    failed     : {result.files_failed}",
        f"    cancelled  : {result.files_cancelled}",
        f"  Total lines  : {snapshot.total_lines}",
        f"  Parsed lines : {snapshot.parsed_lines}",
        f"  Elapsed      : {result.elapsed:.2f}s",
    ]

    lines.append(RULE)
    lines.extend(_table("Levels", sorted(snapshot.level_counts.items())))
    lines.extend(_table(f"Top {top} sources", snapshot.top_sources(top)))
    lines.extend(_table(f"Top {top} messages", snapshot.top_messages(top)))
    lines.append(RULE)

    return "\n".join(lines)
