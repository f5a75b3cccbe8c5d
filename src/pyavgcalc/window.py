"""Bounded unique-value window.

One window per number category. A window is an insertion-ordered set of at
most ``capacity`` numbers: re-sighted values are skipped without promotion,
and a new value arriving at capacity evicts the single oldest value.
"""

from __future__ import annotations

import asyncio
import enum
import math
from collections import deque
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Context, Decimal, localcontext

from pyavgcalc.models.numbers import Number

_TWO_PLACES = Decimal("0.01")
# Enough digits to hold any finite double to two decimal places.
_WIDE = Context(prec=400, rounding=ROUND_HALF_UP)


class WindowState(enum.StrEnum):
    EMPTY = "empty"
    PARTIAL = "partial"
    FULL = "full"


def average(values: Iterable[Number]) -> float:
    """Mean of *values* rounded to two decimal places, ``0`` when empty.

    Rounding is half-up on the exact binary value of the float mean, which
    matches fixed-point formatting: ``0.125`` rounds to ``0.13`` while
    ``1.005`` (stored as ``1.00499...``) rounds to ``1.0``.
    """
    items = list(values)
    if not items:
        return 0.0
    with localcontext(_WIDE):
        try:
            mean = sum(items) / len(items)
        except OverflowError:
            mean = math.inf
        if not math.isfinite(mean):
            # The running sum overflowed; the mean of finite values does not.
            mean = float(sum(Decimal(v) for v in items) / len(items))
        return float(Decimal(mean).quantize(_TWO_PLACES))


class BoundedUniqueWindow:
    """Fixed-capacity, duplicate-free, first-seen-ordered number buffer.

    Mutation is not itself synchronized; callers that read the previous
    state, await, and then ingest must hold :attr:`lock` across the sequence.
    """

    def __init__(self, capacity: int, *, initial: Iterable[Number] = ()) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._values: deque[Number] = deque()
        self._members: set[Number] = set()
        self.lock = asyncio.Lock()
        if initial:
            self.ingest_and_snapshot(initial)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def state(self) -> WindowState:
        if not self._values:
            return WindowState.EMPTY
        if len(self._values) < self._capacity:
            return WindowState.PARTIAL
        return WindowState.FULL

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._members

    def snapshot(self) -> tuple[Number, ...]:
        """Immutable copy of the current contents, oldest first."""
        return tuple(self._values)

    def ingest_and_snapshot(self, values: Iterable[Number]) -> tuple[Number, ...]:
        """Ingest *values* in arrival order and return the resulting snapshot."""
        for value in values:
            if value in self._members:
                continue
            self._values.append(value)
            self._members.add(value)
            if len(self._values) > self._capacity:
                self._members.discard(self._values.popleft())
        return self.snapshot()


def build_windows(categories: Iterable[str], capacity: int) -> Mapping[str, BoundedUniqueWindow]:
    """One empty window per category."""
    return {category: BoundedUniqueWindow(capacity) for category in categories}
