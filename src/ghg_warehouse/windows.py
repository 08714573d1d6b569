"""Partition-then-scan helpers behind the report window functions.

Each helper takes values that are already partitioned and sorted and walks
them once with an accumulator.
"""

from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import TypeVar

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


def partition_by(rows: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group rows by key, keeping first-seen key order and row order."""
    partitions: dict[K, list[T]] = {}
    for row in rows:
        partitions.setdefault(key(row), []).append(row)
    return partitions


def grouping_masks(n: int) -> list[tuple[bool, ...]]:
    """Return the 2**n inclusion masks of an n-dimension cube.

    Mask ``m`` includes dimension ``i`` when bit ``i`` of ``m`` is set, so the
    first mask groups by nothing and the last groups by every dimension.
    """
    if n < 0:
        raise ValueError("n must be non-negative")
    return [tuple(bool(mask >> i & 1) for i in range(n)) for mask in range(1 << n)]


def competition_rank(values: Sequence[float]) -> list[int]:
    """Standard competition ranks for values sorted best first.

    Ties share a rank and the next distinct value skips ahead, e.g.
    ``[9, 7, 7, 3] -> [1, 2, 2, 4]``.
    """
    ranks: list[int] = []
    for position, value in enumerate(values, 1):
        if ranks and value == values[position - 2]:
            ranks.append(ranks[-1])
        else:
            ranks.append(position)
    return ranks


def trailing_mean(values: Sequence[float], size: int) -> list[float]:
    """Mean over the current value and up to ``size - 1`` preceding values.

    The first rows of a partition average over whatever history exists.
    """
    if size < 1:
        raise ValueError("window size must be at least 1")
    means: list[float] = []
    for i in range(len(values)):
        frame = values[max(0, i - size + 1) : i + 1]
        means.append(sum(frame) / len(frame))
    return means


def last_value_following(values: Sequence[T]) -> list[T]:
    """Last value of the frame from the current row to the partition end."""
    if not values:
        return []
    return [values[-1]] * len(values)


def running_sum(values: Iterable[float]) -> list[float]:
    totals: list[float] = []
    total = 0.0
    for value in values:
        total += value
        totals.append(total)
    return totals


def collation_key(text: str) -> tuple[str, str]:
    """Case-insensitive sort key with a case-sensitive tiebreak."""
    return (text.casefold(), text)
