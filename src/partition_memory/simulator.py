from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from .fragmentation import COMPACTION_THRESHOLD, fragmentation, free_space_stats, needs_compaction
from .operations import allocate, compact, deallocate
from .placement import PlacementPolicy, Policy, resolve_policy
from .results import AllocationResult, CompactionResult, DeallocationResult, ErrorKind
from .segment import IdFactory
from .snapshot import DEFAULT_TOTAL_MEMORY, Snapshot, initialize, partition_errors

if TYPE_CHECKING:
    from experiments.instrumentation import SimulationProfiler


@dataclass
class SimulationConfig:
    """
    Options for a simulation run.

    auto_compact: compact once and retry when an allocation fails only because
        free space is fragmented.
    compaction_threshold: fragmentation ratio above which ``stats`` flags that
        compaction is advisable.
    """

    total_memory: int = DEFAULT_TOTAL_MEMORY
    policy: Policy = Policy.FIRST_FIT
    auto_compact: bool = False
    compaction_threshold: float = COMPACTION_THRESHOLD


class MemorySimulator:
    """
    Driver that owns the current snapshot and next-fit cursor.

    Every core call receives the current snapshot and the returned snapshot
    replaces it, so callers only deal with job names and sizes.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        *,
        profiler: Optional["SimulationProfiler"] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.profiler = profiler
        self._new_id = id_factory
        self.snapshot: Snapshot = initialize(self.config.total_memory, self._new_id)
        self.cursor = 0
        self.compactions = 0

    def reset(self) -> None:
        self.snapshot = initialize(self.config.total_memory, self._new_id)
        self.cursor = 0
        self.compactions = 0
        if self.profiler:
            self.profiler.record_event("reset", {"total_memory": self.config.total_memory})

    # -- Operations ----------------------------------------------------------------
    def allocate(
        self,
        job_name: str,
        size: int,
        policy: Optional[Union[str, Policy, PlacementPolicy]] = None,
    ) -> AllocationResult:
        chosen = policy if policy is not None else self.config.policy
        if not isinstance(chosen, PlacementPolicy):
            chosen = resolve_policy(chosen)
        result = allocate(self.snapshot, job_name, size, chosen, self.cursor, new_id=self._new_id)
        if (
            not result.ok
            and result.error is ErrorKind.INSUFFICIENT_MEMORY
            and self.config.auto_compact
            and self.snapshot.total_free() >= size
        ):
            self.compact(trigger="allocation_failure")
            result = allocate(self.snapshot, job_name, size, chosen, self.cursor, new_id=self._new_id)
        policy_name = _policy_name(chosen)
        self._apply(result.snapshot)
        if result.ok:
            self.cursor = result.cursor
            self._record("allocation", job=job_name, size=size, policy=policy_name, address=result.segment.start)
        else:
            self._record(
                "allocation_failed", job=job_name, size=size, policy=policy_name, error=result.error.value
            )
        return result

    def deallocate(self, job_name: str) -> DeallocationResult:
        result = deallocate(self.snapshot, job_name, new_id=self._new_id)
        self._apply(result.snapshot)
        if result.ok:
            self._record("deallocation", job=job_name, size=result.released)
        else:
            self._record("deallocation_failed", job=job_name, error=result.error.value)
        return result

    def compact(self, trigger: str = "manual") -> CompactionResult:
        before = fragmentation(self.snapshot)
        result = compact(self.snapshot, new_id=self._new_id)
        self._apply(result.snapshot)
        self.cursor = result.cursor
        self.compactions += 1
        self._record(
            "compaction", trigger=trigger, jobs_moved=result.jobs_moved, fragmentation_before=before
        )
        return result

    # -- Introspection -------------------------------------------------------------
    def fragmentation(self) -> float:
        return fragmentation(self.snapshot)

    def stats(self) -> Dict[str, Any]:
        stats = free_space_stats(self.snapshot)
        stats["cursor"] = self.cursor
        stats["compactions"] = self.compactions
        stats["compaction_advised"] = needs_compaction(self.snapshot, self.config.compaction_threshold)
        return stats

    def debug_snapshot(self) -> Dict[str, Any]:
        return {
            "space": self.snapshot.describe(),
            "segments": [
                {
                    "id": seg.id,
                    "start": seg.start,
                    "length": seg.length,
                    "kind": seg.kind,
                    "job": seg.job_name,
                }
                for seg in self.snapshot.segments()
            ],
            "cursor": self.cursor,
            "invariant_errors": partition_errors(self.snapshot),
        }

    def _apply(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot

    def _record(self, event_type: str, **payload: Any) -> None:
        if not self.profiler:
            return
        self.profiler.record_event(
            event_type,
            {
                **payload,
                "heap_used": self.snapshot.total_allocated(),
                "heap_free": self.snapshot.total_free(),
                "fragmentation": fragmentation(self.snapshot),
            },
        )


def _policy_name(policy: Union[Policy, PlacementPolicy]) -> str:
    if isinstance(policy, Policy):
        return policy.value
    known = getattr(policy, "policy", None)
    return known.value if isinstance(known, Policy) else type(policy).__name__
