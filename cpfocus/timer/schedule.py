"""
Hint unlock schedule — three elapsed-minute offsets, one per hint.

Offsets are always kept valid: hint 1 never unlocks before the configured
floor and each later hint trails the previous one by at least the minimum gap.
Invalid input is repaired by pushing offsets forward, never rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

HINT_COUNT = 3
DEFAULT_OFFSETS: Tuple[int, ...] = (20, 25, 30)
MIN_FIRST_OFFSET = 20
MIN_GAP = 5


def repair_offsets(
    values: Iterable[int],
    floor: int = MIN_FIRST_OFFSET,
    gap: int = MIN_GAP,
) -> List[int]:
    """
    Clamp the first offset to *floor*, then cascade *gap* through the rest.

    >>> repair_offsets([10, 12, 14])
    [20, 25, 30]
    >>> repair_offsets([30, 31, 60])
    [30, 35, 60]
    """
    given = [int(v) for v in list(values)[:HINT_COUNT]]
    repaired: List[int] = []
    for i in range(HINT_COUNT):
        if i == 0:
            minimum = floor
        else:
            minimum = repaired[i - 1] + gap
        value = given[i] if i < len(given) else minimum
        repaired.append(max(value, minimum))
    return repaired


@dataclass(frozen=True)
class UnlockSchedule:
    offsets: Tuple[int, ...] = DEFAULT_OFFSETS

    @classmethod
    def build(
        cls,
        values: Iterable[int],
        floor: int = MIN_FIRST_OFFSET,
        gap: int = MIN_GAP,
    ) -> "UnlockSchedule":
        return cls(tuple(repair_offsets(values, floor, gap)))

    def __len__(self) -> int:
        return len(self.offsets)

    def eligible_count(self, elapsed_seconds: float) -> int:
        """Number of hints whose offset has been crossed after *elapsed_seconds*."""
        elapsed_minutes = int(max(elapsed_seconds, 0) // 60)
        return sum(1 for offset in self.offsets if elapsed_minutes >= offset)

    def fire_at(self, started_at: int, index: int) -> int:
        """Absolute time (ms) at which hint ``index + 1`` becomes eligible."""
        return started_at + self.offsets[index] * 60_000
