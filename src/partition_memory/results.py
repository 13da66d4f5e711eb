from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .segment import Segment
from .snapshot import Snapshot


class ErrorKind(str, Enum):
    INVALID_SIZE = "InvalidSize"
    DUPLICATE_JOB = "DuplicateJob"
    OVERSIZED_REQUEST = "OversizedRequest"
    INSUFFICIENT_MEMORY = "InsufficientMemory"
    JOB_NOT_FOUND = "JobNotFound"


class PartitionError(MemoryError):
    """Raised by ``raise_for_error`` when a caller wants failures as exceptions."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class _Outcome:
    ok: bool
    snapshot: Snapshot
    message: str
    error: Optional[ErrorKind]

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise PartitionError(self.error, self.message)


@dataclass(frozen=True)
class AllocationResult(_Outcome):
    """Outcome of ``allocate``; ``cursor`` echoes the input cursor on failure."""

    cursor: int = 0
    segment: Optional[Segment] = None


@dataclass(frozen=True)
class DeallocationResult(_Outcome):
    released: int = 0


@dataclass(frozen=True)
class CompactionResult:
    snapshot: Snapshot
    jobs_moved: int
    cursor: int

    @property
    def message(self) -> str:
        return f"Compaction complete: moved {self.jobs_moved} jobs"
