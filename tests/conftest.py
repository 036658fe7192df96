"""Shared test fixtures."""

from pathlib import Path

import pytest

from store import AggregationStore


@pytest.fixture
def store() -> AggregationStore:
    """Provide an empty aggregation store."""
    return AggregationStore()


@pytest.fixture
def write_log(tmp_path: Path):
    """Factory fixture writing lines into a file under tmp_path.

    Returns a callable (relative_path, lines) -> Path.
    """

    def _write(relative: str, lines: list[str]) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return path

    return _write
