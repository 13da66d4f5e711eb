from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterator, List, Optional


@dataclass
class JobOperation:
    kind: str  # "alloc" or "free"
    name: str
    size: Optional[int] = None


class JobStream:
    """
    Generate a reproducible stream of job arrivals and departures.

    Jobs arrive with sizes drawn uniformly from ``[min_size, max_size]``; with
    probability ``free_probability`` a step instead releases a random live job,
    which is what carves holes into the address space.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        *,
        min_size: int = 1000,
        max_size: int = 12000,
        free_probability: float = 0.4,
    ) -> None:
        if min_size <= 0 or max_size < min_size:
            raise ValueError(f"Invalid size range [{min_size}, {max_size}]")
        self.random = random.Random(seed)
        self.min_size = min_size
        self.max_size = max_size
        self.free_probability = free_probability
        self._live: List[str] = []
        self._counter = 0

    def next_operation(self) -> JobOperation:
        if self._live and self.random.random() < self.free_probability:
            name = self._live.pop(self.random.randrange(len(self._live)))
            return JobOperation("free", name)
        self._counter += 1
        name = f"J{self._counter}"
        self._live.append(name)
        return JobOperation("alloc", name, self.random.randint(self.min_size, self.max_size))

    def take(self, steps: int) -> List[JobOperation]:
        return [self.next_operation() for _ in range(steps)]

    def __iter__(self) -> Iterator[JobOperation]:
        while True:
            yield self.next_operation()
