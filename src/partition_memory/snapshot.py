from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .segment import IdFactory, Segment, free_segment

DEFAULT_TOTAL_MEMORY = 100000


def _by_address(segments) -> Tuple[Segment, ...]:
    return tuple(sorted(segments, key=lambda seg: seg.start))


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable view of the address space: the free list plus the allocated set.

    Both collections are stored sorted by start address. Operations never
    mutate a snapshot; they build a new one, so a failed call can hand the
    caller's snapshot straight back.
    """

    total_memory: int
    free: Tuple[Segment, ...]
    allocated: Tuple[Segment, ...]

    @classmethod
    def build(cls, total_memory: int, free, allocated) -> "Snapshot":
        return cls(total_memory, _by_address(free), _by_address(allocated))

    # -- Queries ------------------------------------------------------------------
    def total_free(self) -> int:
        return sum(segment.length for segment in self.free)

    def total_allocated(self) -> int:
        return sum(segment.length for segment in self.allocated)

    def largest_free_block(self) -> int:
        return max((segment.length for segment in self.free), default=0)

    def free_sorted(self) -> List[Segment]:
        """Return a copy of the free list in address order."""
        return list(self.free)

    def allocated_sorted(self) -> List[Segment]:
        return list(self.allocated)

    def segments(self) -> List[Segment]:
        """Free and allocated segments merged in address order."""
        return sorted(self.free + self.allocated, key=lambda seg: seg.start)

    def find_job(self, job_name: str) -> Optional[Segment]:
        for segment in self.allocated:
            if segment.job_name == job_name:
                return segment
        return None

    def job_names(self) -> List[str]:
        return [segment.job_name for segment in self.allocated]

    def segment_at(self, address: int) -> Optional[Segment]:
        for segment in self.segments():
            if segment.contains(address):
                return segment
        return None

    def describe(self) -> Dict[str, List[Tuple]]:
        """Expose the current allocation map for diagnostics."""
        return {
            "allocated": [(seg.job_name, seg.start, seg.length) for seg in self.allocated],
            "free": [(seg.start, seg.length) for seg in self.free],
        }


def initialize(total_memory: int = DEFAULT_TOTAL_MEMORY, new_id: Optional[IdFactory] = None) -> Snapshot:
    """Create a snapshot holding one free segment over the whole address space."""
    if isinstance(total_memory, bool) or not isinstance(total_memory, int):
        raise TypeError(f"total_memory must be an integer, got {total_memory!r}")
    if total_memory <= 0:
        raise ValueError(f"total_memory must be positive, got {total_memory}")
    return Snapshot(total_memory, (free_segment(0, total_memory, new_id),), ())


def partition_errors(snapshot: Snapshot) -> List[str]:
    """
    Describe every way the snapshot breaks the partition invariant.

    An empty list means the segments are non-empty, pairwise disjoint and
    cover ``[0, total_memory)`` without gaps. Used for diagnostics only.
    """
    problems: List[str] = []
    cursor = 0
    names = set()
    for segment in snapshot.segments():
        if segment.length <= 0:
            problems.append(f"segment {segment.id} has non-positive length {segment.length}")
        if segment.start > cursor:
            problems.append(f"gap [{cursor}, {segment.start})")
        elif segment.start < cursor:
            problems.append(f"overlap at {segment.start} (segment {segment.id})")
        cursor = max(cursor, segment.end)
        if not segment.is_free:
            if segment.job_name in names:
                problems.append(f"duplicate job name {segment.job_name!r}")
            names.add(segment.job_name)
    if cursor < snapshot.total_memory:
        problems.append(f"gap [{cursor}, {snapshot.total_memory})")
    elif cursor > snapshot.total_memory:
        problems.append(f"segments extend past {snapshot.total_memory} to {cursor}")
    return problems
