from __future__ import annotations

import argparse
import csv
import statistics
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from partition_memory import MemorySimulator, Policy, SequentialIds, SimulationConfig
from experiments.instrumentation import SimulationProfiler
from experiments.workload import JobOperation, JobStream


def run_policy_trial(
    operations: Sequence[JobOperation],
    policy: Policy,
    *,
    total_memory: int,
    auto_compact: bool = False,
    output_dir: Optional[str] = None,
    run_id: Optional[str] = None,
) -> Dict[str, object]:
    """Replay ``operations`` against a fresh simulator using ``policy``."""
    profiler = SimulationProfiler(
        run_id=run_id or f"sweep_{policy.name.lower()}",
        output_dir=output_dir,
    )
    simulator = MemorySimulator(
        SimulationConfig(total_memory=total_memory, policy=policy, auto_compact=auto_compact),
        profiler=profiler,
        id_factory=SequentialIds(),
    )

    allocations = 0
    failures = 0
    fragmentation_samples: List[float] = []
    for operation in operations:
        if operation.kind == "alloc":
            result = simulator.allocate(operation.name, operation.size)
            allocations += 1
            if not result.ok:
                failures += 1
        else:
            simulator.deallocate(operation.name)
        fragmentation_samples.append(simulator.fragmentation())

    profiler.flush()
    stats = simulator.stats()
    return {
        "policy": policy.value,
        "allocations": allocations,
        "failures": failures,
        "failure_rate": failures / allocations if allocations else 0.0,
        "avg_fragmentation": statistics.mean(fragmentation_samples) if fragmentation_samples else 0.0,
        "final_fragmentation": stats["fragmentation"],
        "final_utilization": stats["utilization"],
        "compactions": stats["compactions"],
    }


def run_sweep(
    steps: int,
    *,
    total_memory: int,
    seed: int,
    policies: Sequence[Policy] = tuple(Policy),
    auto_compact: bool = False,
    min_size: int = 1000,
    max_size: int = 12000,
    free_probability: float = 0.4,
    output_dir: Optional[str] = None,
) -> List[Dict[str, object]]:
    stream = JobStream(seed, min_size=min_size, max_size=max_size, free_probability=free_probability)
    operations = stream.take(steps)
    rows = []
    for policy in policies:
        summary = run_policy_trial(
            operations,
            policy,
            total_memory=total_memory,
            auto_compact=auto_compact,
            output_dir=output_dir,
            run_id=f"sweep_{policy.name.lower()}_seed{seed}",
        )
        summary["seed"] = seed
        rows.append(summary)
    return rows


def write_summary(path: str, rows: Sequence[Dict[str, object]]) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fieldnames = sorted({key for row in rows for key in row.keys()})
    with output_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare placement policies on one synthetic job stream.")
    parser.add_argument("--steps", type=int, default=200, help="Number of allocate/free operations.")
    parser.add_argument("--total-memory", type=int, default=100000, help="Size of the address space.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--min-size", type=int, default=1000)
    parser.add_argument("--max-size", type=int, default=12000)
    parser.add_argument("--free-probability", type=float, default=0.4)
    parser.add_argument(
        "--policies",
        type=str,
        nargs="+",
        default=[policy.name.lower() for policy in Policy],
        choices=[policy.name.lower() for policy in Policy],
    )
    parser.add_argument("--auto-compact", action="store_true", help="Compact and retry on fragmented failures.")
    parser.add_argument("--events-dir", type=str, default=None, help="Write profiler JSONL/CSV here.")
    parser.add_argument("--output", type=str, default=None, help="Write the summary CSV here.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> List[Dict[str, object]]:
    args = parse_args(argv)
    rows = run_sweep(
        args.steps,
        total_memory=args.total_memory,
        seed=args.seed,
        policies=[Policy[name.upper()] for name in args.policies],
        auto_compact=args.auto_compact,
        min_size=args.min_size,
        max_size=args.max_size,
        free_probability=args.free_probability,
        output_dir=args.events_dir,
    )
    for row in rows:
        print(
            f"[{row['policy']}] failures={row['failures']}/{row['allocations']} "
            f"avg_frag={row['avg_fragmentation']:.3f} final_frag={row['final_fragmentation']:.3f} "
            f"compactions={row['compactions']}"
        )
    if args.output:
        write_summary(args.output, rows)
    return rows


if __name__ == "__main__":
    main()
