from __future__ import annotations

from typing import Iterable, List, Optional, Union

from .placement import PlacementPolicy, Policy, get_policy
from .results import AllocationResult, CompactionResult, DeallocationResult, ErrorKind
from .segment import IdFactory, Segment, allocated_segment, free_segment
from .snapshot import Snapshot


def _check_size(size: int) -> None:
    if isinstance(size, bool) or not isinstance(size, int):
        raise TypeError(f"size must be an integer, got {size!r}")


def allocate(
    snapshot: Snapshot,
    job_name: str,
    size: int,
    policy: Union[str, Policy, PlacementPolicy] = Policy.FIRST_FIT,
    cursor: int = 0,
    *,
    new_id: Optional[IdFactory] = None,
) -> AllocationResult:
    """
    Carve ``size`` units for ``job_name`` out of the free segment chosen by
    ``policy``.

    An exact fit consumes the free segment. Otherwise the free segment keeps
    its identity and shrinks from the front, and the new allocated segment
    takes the low end.
    """
    _check_size(size)
    placement = get_policy(policy)

    def fail(kind: ErrorKind, message: str) -> AllocationResult:
        return AllocationResult(False, snapshot, message, kind, cursor=cursor)

    if size <= 0:
        return fail(ErrorKind.INVALID_SIZE, "Allocation size must be greater than 0")
    if snapshot.find_job(job_name) is not None:
        return fail(ErrorKind.DUPLICATE_JOB, f"Job {job_name} already exists")
    if size > snapshot.total_memory:
        return fail(ErrorKind.OVERSIZED_REQUEST, "Request exceeds total memory capacity")

    free = snapshot.free_sorted()
    index = placement.select(free, size, cursor)
    if index is None:
        return fail(ErrorKind.INSUFFICIENT_MEMORY, f"Insufficient memory: unable to allocate {size}B")

    target = free[index]
    segment = allocated_segment(job_name, target.start, size, new_id)
    if target.length == size:
        del free[index]
    else:
        free[index] = target.shrink_front(size)

    return AllocationResult(
        True,
        Snapshot.build(snapshot.total_memory, free, snapshot.allocated + (segment,)),
        f"Allocated {size}B to job {job_name}",
        None,
        cursor=segment.end,
        segment=segment,
    )


def coalesce(free: Iterable[Segment], new_id: Optional[IdFactory] = None) -> List[Segment]:
    """
    Merge address-adjacent free segments in one sweep over the sorted list.

    A run of two or more segments becomes one segment with a fresh identity;
    segments with no free neighbour keep theirs.
    """
    ordered = sorted(free, key=lambda seg: seg.start)
    if len(ordered) <= 1:
        return ordered
    merged: List[Segment] = []
    run: List[Segment] = [ordered[0]]
    for segment in ordered[1:]:
        if run[-1].adjoins(segment):
            run.append(segment)
            continue
        merged.append(_join(run, new_id))
        run = [segment]
    merged.append(_join(run, new_id))
    return merged


def _join(run: List[Segment], new_id: Optional[IdFactory]) -> Segment:
    if len(run) == 1:
        return run[0]
    return free_segment(run[0].start, sum(seg.length for seg in run), new_id)


def deallocate(
    snapshot: Snapshot,
    job_name: str,
    *,
    new_id: Optional[IdFactory] = None,
) -> DeallocationResult:
    """Return ``job_name``'s segment to the free list and coalesce neighbours."""
    victim = snapshot.find_job(job_name)
    if victim is None:
        return DeallocationResult(
            False, snapshot, f"Job not found: {job_name}", ErrorKind.JOB_NOT_FOUND
        )
    released = free_segment(victim.start, victim.length, new_id)
    allocated = tuple(seg for seg in snapshot.allocated if seg.id != victim.id)
    free = coalesce(snapshot.free + (released,), new_id)
    return DeallocationResult(
        True,
        Snapshot.build(snapshot.total_memory, free, allocated),
        f"Released job {job_name} ({victim.length}B freed)",
        None,
        released=victim.length,
    )


def compact(snapshot: Snapshot, *, new_id: Optional[IdFactory] = None) -> CompactionResult:
    """
    Slide every allocated segment down to the low end of the address space,
    keeping their relative order and identities, and leave one trailing free
    segment (none if memory is full).
    """
    moved: List[Segment] = []
    address = 0
    for segment in snapshot.allocated_sorted():
        moved.append(segment.slide_to(address))
        address += segment.length

    remaining = snapshot.total_memory - address
    if remaining == 0:
        free: List[Segment] = []
    elif len(snapshot.free) == 1 and snapshot.free[0].start == address:
        # Already compacted; keep the trailing block as is.
        free = [snapshot.free[0]]
    else:
        free = [free_segment(address, remaining, new_id)]

    return CompactionResult(
        Snapshot.build(snapshot.total_memory, free, moved),
        jobs_moved=len(moved),
        cursor=address,
    )
