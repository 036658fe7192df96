import heapq
import itertools
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple


DEFAULT_SHARDS = 16


class StoreFrozenError(RuntimeError):
    """Raised when a write reaches a store that has already been frozen."""


class StoreNotFrozenError(RuntimeError):
    """Raised when a snapshot is requested while writes may still happen."""


# ---------- Top-K ----------

def top_k(counts: Mapping[str, int], k: int) -> List[Tuple[str, int]]:
    """
    Return the k highest (key, count) pairs, count descending.

    Equal counts are ordered by key ascending so the result is the
    same on every run.
    """
    if k < 1:
        raise ValueError(f"k must be positive, got {k}")

    return heapq.nsmallest(k, counts.items(), key=lambda kv: (-kv[1], kv[0]))


# ---------- Stripes ----------

class _Stripe:
    """
    Partial counters owned by the writer threads mapped onto this stripe.

    The lock covers all four counters, so one record_parsed() call is
    applied completely or not at all.
    """
    __slots__ = ("lock", "lines", "levels", "sources", "messages")

    def __init__(self):
        self.lock = threading.Lock()
        self.lines = 0
        self.levels: Dict[str, int] = {}
        self.sources: Dict[str, int] = {}
        self.messages: Dict[str, int] = {}


def _merge(target: Dict[str, int], partial: Dict[str, int]):
    for key, count in partial.items():
        target[key] = target.get(key, 0) + count


# ---------- Snapshot ----------

@dataclass(frozen=True)
class Snapshot:
    """
    Immutable view of every counter, taken after ingestion finished.
    """
    total_lines: int
    level_counts: Mapping[str, int]
    source_counts: Mapping[str, int]
    message_counts: Mapping[str, int]

    @property
    def parsed_lines(self) -> int:
        return sum(self.level_counts.values())

    def top_levels(self, k: int) -> List[Tuple[str, int]]:
        return top_k(self.level_counts, k)

    def top_sources(self, k: int) -> List[Tuple[str, int]]:
        return top_k(self.source_counts, k)

    def top_messages(self, k: int) -> List[Tuple[str, int]]:
        return top_k(self.message_counts, k)


# ---------- Store ----------

class AggregationStore:
    """
    Concurrent counters shared by all file workers of one run.

    Each writer thread is given its own stripe on first use (round-robin
    once there are more threads than stripes), so workers rarely wait on
    each other. freeze() takes every stripe lock, merges the partial
    counters once, and after that the store is read-only.
    """

    def __init__(self, shards: int = DEFAULT_SHARDS):
        if shards < 1:
            raise ValueError(f"shards must be positive, got {shards}")

        self._stripes = [_Stripe() for _ in range(shards)]
        self._slots = itertools.count()
        self._slot_lock = threading.Lock()
        self._local = threading.local()

        self._frozen = threading.Event()
        self._freeze_lock = threading.Lock()
        self._snapshot: Optional[Snapshot] = None

    def _stripe(self) -> _Stripe:
        stripe = getattr(self._local, "stripe", None)
        if stripe is None:
            with self._slot_lock:
                slot = next(self._slots)
            stripe = self._stripes[slot % len(self._stripes)]
            self._local.stripe = stripe
        return stripe

    # ---------- Write API ----------

    def record_line(self):
        stripe = self._stripe()
        with stripe.lock:
            self._check_writable()
            stripe.lines += 1

    def record_parsed(self, level: str, source: str, template: str):
        stripe = self._stripe()
        with stripe.lock:
            self._check_writable()
            stripe.levels[level] = stripe.levels.get(level, 0) + 1
            stripe.sources[source] = stripe.sources.get(source, 0) + 1
            stripe.messages[template] = stripe.messages.get(template, 0) + 1

    def _check_writable(self):
        # called with the stripe lock held
        if self._frozen.is_set():
            raise StoreFrozenError("aggregation store is frozen")

    # ---------- Lifecycle ----------

    def freeze(self):
        """
        Stop accepting writes and fix the final counts.

        Writes already holding a stripe lock finish first; any write
        that takes a lock afterwards raises StoreFrozenError.
        """
        with self._freeze_lock:
            if self._snapshot is not None:
                return

            self._frozen.set()

            total_lines = 0
            levels: Dict[str, int] = {}
            sources: Dict[str, int] = {}
            messages: Dict[str, int] = {}
            for stripe in self._stripes:
                with stripe.lock:
                    total_lines += stripe.lines
                    _merge(levels, stripe.levels)
                    _merge(sources, stripe.sources)
                    _merge(messages, stripe.messages)

            self._snapshot = Snapshot(
                total_lines=total_lines,
                level_counts=MappingProxyType(levels),
                source_counts=MappingProxyType(sources),
                message_counts=MappingProxyType(messages),
            )

    @property
    def frozen(self) -> bool:
        return self._frozen.is_set()

    # ---------- Read API ----------

    def snapshot(self) -> Snapshot:
        """Return the snapshot fixed by freeze(); the same object every time."""
        snapshot = self._snapshot
        if snapshot is None:
            raise StoreNotFrozenError(
                "snapshot() requires freeze() after all writers finished"
            )
        return snapshot
