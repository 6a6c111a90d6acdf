"""Ordering helpers for indexed floating-point values."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, eq=False)
class IndexedValue:
    """A value tagged with its original position, compared by value only."""

    index: int
    value: float

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, IndexedValue):
            return NotImplemented
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __lt__(self, other: IndexedValue) -> bool:
        if not isinstance(other, IndexedValue):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: IndexedValue) -> bool:
        if not isinstance(other, IndexedValue):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: IndexedValue) -> bool:
        if not isinstance(other, IndexedValue):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: IndexedValue) -> bool:
        if not isinstance(other, IndexedValue):
            return NotImplemented
        return self.value >= other.value


def _decreasing_key(item: IndexedValue) -> tuple[bool, float]:
    value = float(item.value)
    if math.isnan(value):
        return (True, 0.0)
    return (False, -value)


def decreasing_sort_nans_first(values: Iterable[IndexedValue]) -> list[IndexedValue]:
    """Return the values sorted in decreasing order, NaN values placed last."""
    return sorted(values, key=_decreasing_key)