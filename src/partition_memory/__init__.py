"""
Contiguous memory partitioning simulator.

Pure allocate/deallocate/compact transitions over immutable snapshots, the
four classical placement policies, and an external-fragmentation metric.
"""

from .fragmentation import fragmentation, free_space_stats, needs_compaction
from .operations import allocate, coalesce, compact, deallocate
from .placement import (
    BestFitPolicy,
    FirstFitPolicy,
    NextFitPolicy,
    PlacementPolicy,
    Policy,
    WorstFitPolicy,
    get_policy,
)
from .results import AllocationResult, CompactionResult, DeallocationResult, ErrorKind, PartitionError
from .segment import Segment, SequentialIds
from .simulator import MemorySimulator, SimulationConfig
from .snapshot import DEFAULT_TOTAL_MEMORY, Snapshot, initialize, partition_errors

__all__ = [
    "Segment",
    "SequentialIds",
    "Snapshot",
    "initialize",
    "partition_errors",
    "DEFAULT_TOTAL_MEMORY",
    "Policy",
    "PlacementPolicy",
    "FirstFitPolicy",
    "BestFitPolicy",
    "WorstFitPolicy",
    "NextFitPolicy",
    "get_policy",
    "allocate",
    "deallocate",
    "compact",
    "coalesce",
    "fragmentation",
    "free_space_stats",
    "needs_compaction",
    "ErrorKind",
    "PartitionError",
    "AllocationResult",
    "DeallocationResult",
    "CompactionResult",
    "MemorySimulator",
    "SimulationConfig",
]
