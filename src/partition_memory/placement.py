from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Sequence, Union

from .segment import Segment


class Policy(str, Enum):
    FIRST_FIT = "First Fit"
    BEST_FIT = "Best Fit"
    WORST_FIT = "Worst Fit"
    NEXT_FIT = "Next Fit"


class PlacementPolicy(ABC):
    """
    Abstract placement strategy.

    ``select`` receives the free list sorted by address and returns the index
    of the chosen segment, or None if no segment has ``length >= size``.
    """

    policy: Policy

    @abstractmethod
    def select(self, free: Sequence[Segment], size: int, cursor: int = 0) -> Optional[int]:
        ...


class FirstFitPolicy(PlacementPolicy):
    """
    First-fit: traverse the free list in address order and pick the first
    segment that fits.
    """

    policy = Policy.FIRST_FIT

    def select(self, free: Sequence[Segment], size: int, cursor: int = 0) -> Optional[int]:
        for index, segment in enumerate(free):
            if segment.length >= size:
                return index
        return None


class BestFitPolicy(PlacementPolicy):
    """
    Best-fit: choose the smallest free segment that can hold the request.
    Only a strictly tighter fit replaces the current choice, so ties go to
    the lowest address.
    """

    policy = Policy.BEST_FIT

    def select(self, free: Sequence[Segment], size: int, cursor: int = 0) -> Optional[int]:
        best_index: Optional[int] = None
        best_slack = 0
        for index, segment in enumerate(free):
            if segment.length < size:
                continue
            slack = segment.length - size
            if best_index is None or slack < best_slack:
                best_index, best_slack = index, slack
        return best_index


class WorstFitPolicy(PlacementPolicy):
    """
    Worst-fit: carve from the largest free segment so the leftover stays
    usable. Ties go to the lowest address.
    """

    policy = Policy.WORST_FIT

    def select(self, free: Sequence[Segment], size: int, cursor: int = 0) -> Optional[int]:
        worst_index: Optional[int] = None
        worst_length = -1
        for index, segment in enumerate(free):
            if segment.length >= size and segment.length > worst_length:
                worst_index, worst_length = index, segment.length
        return worst_index


class NextFitPolicy(PlacementPolicy):
    """
    Next-fit: circular first-fit that resumes at the first free segment
    starting at or after ``cursor``, wrapping to the front of the list.
    """

    policy = Policy.NEXT_FIT

    def select(self, free: Sequence[Segment], size: int, cursor: int = 0) -> Optional[int]:
        start_index = next(
            (index for index, segment in enumerate(free) if segment.start >= cursor),
            len(free),
        )
        for index in range(start_index, len(free)):
            if free[index].length >= size:
                return index
        for index in range(start_index):
            if free[index].length >= size:
                return index
        return None


_POLICIES: Dict[Policy, PlacementPolicy] = {
    Policy.FIRST_FIT: FirstFitPolicy(),
    Policy.BEST_FIT: BestFitPolicy(),
    Policy.WORST_FIT: WorstFitPolicy(),
    Policy.NEXT_FIT: NextFitPolicy(),
}


def _normalise(name: str) -> str:
    return name.strip().lower().replace("_", " ").replace("-", " ")


def resolve_policy(name: Union[str, Policy]) -> Policy:
    """Map an enum member, display name or snake_case alias to a Policy."""
    if isinstance(name, Policy):
        return name
    wanted = _normalise(name)
    for policy in Policy:
        if _normalise(policy.value) == wanted or _normalise(policy.name) == wanted:
            return policy
    raise ValueError(f"Unknown placement policy {name!r}")


def get_policy(name: Union[str, Policy, PlacementPolicy]) -> PlacementPolicy:
    if isinstance(name, PlacementPolicy):
        return name
    return _POLICIES[resolve_policy(name)]
