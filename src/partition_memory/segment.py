from __future__ import annotations

import itertools
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Optional

IdFactory = Callable[[], str]


def random_id() -> str:
    """Default identity factory: a collision-resistant random hex id."""
    return uuid.uuid4().hex


class SequentialIds:
    """
    Deterministic identity factory producing ``seg-1``, ``seg-2``, ...

    Pass an instance wherever an ``IdFactory`` is accepted to make runs
    reproducible.
    """

    def __init__(self, prefix: str = "seg", start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


@dataclass(frozen=True, slots=True)
class Segment:
    """
    A contiguous region of the simulated address space.

    Free segments carry ``job_name=None``; allocated segments carry the
    owning job's name. ``id`` survives shrinking and sliding, but not
    splitting, merging or fresh allocation.
    """

    id: str
    start: int
    length: int
    job_name: Optional[str] = None

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def is_free(self) -> bool:
        return self.job_name is None

    @property
    def kind(self) -> str:
        return "free" if self.is_free else "allocated"

    def shrink_front(self, size: int) -> "Segment":
        """Drop the first ``size`` units, keeping the identity."""
        return replace(self, start=self.start + size, length=self.length - size)

    def slide_to(self, start: int) -> "Segment":
        """Move to ``start`` keeping the identity and length."""
        return replace(self, start=start)

    def adjoins(self, other: "Segment") -> bool:
        return self.end == other.start

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end


def free_segment(start: int, length: int, new_id: Optional[IdFactory] = None) -> Segment:
    return Segment(id=(new_id or random_id)(), start=start, length=length)


def allocated_segment(
    job_name: str, start: int, length: int, new_id: Optional[IdFactory] = None
) -> Segment:
    return Segment(id=(new_id or random_id)(), start=start, length=length, job_name=job_name)
