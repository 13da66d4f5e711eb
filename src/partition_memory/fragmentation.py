from __future__ import annotations

from typing import Any, Dict

from .snapshot import Snapshot

COMPACTION_THRESHOLD = 0.5


def fragmentation(snapshot: Snapshot) -> float:
    """
    External fragmentation: ``1 - largest_free_block / total_free``.

    0.0 means all free space sits in one block; values near 1.0 mean it is
    splintered into many small holes.
    """
    total = snapshot.total_free()
    if not snapshot.free or total == 0:
        return 0.0
    return 1.0 - (snapshot.largest_free_block() / total)


def needs_compaction(snapshot: Snapshot, threshold: float = COMPACTION_THRESHOLD) -> bool:
    return fragmentation(snapshot) > threshold


def free_space_stats(snapshot: Snapshot) -> Dict[str, Any]:
    used = snapshot.total_allocated()
    return {
        "total_memory": snapshot.total_memory,
        "used": used,
        "free": snapshot.total_free(),
        "free_blocks": len(snapshot.free),
        "jobs": len(snapshot.allocated),
        "largest_free_block": snapshot.largest_free_block(),
        "utilization": used / snapshot.total_memory,
        "fragmentation": fragmentation(snapshot),
    }
