"""Growable double-ended ring buffer used as the ingress queue."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """FIFO/LIFO queue over a preallocated list that doubles when full.

    Elements are addressed relative to the logical front. Indexed access is
    not bounds-checked against ``len(buffer)``; callers must guard it.
    """

    def __init__(self, initial_capacity: int = 2) -> None:
        if initial_capacity < 0:
            raise ValueError("initial_capacity must be >= 0")
        self._items: list[T | None] = [None] * initial_capacity
        self._start = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[(self._start + index) % len(self._items)]

    def __setitem__(self, index: int, value: T) -> None:
        self._items[(self._start + index) % len(self._items)] = value

    def __iter__(self) -> Iterator[T]:
        for i in range(self._count):
            yield self[i]

    def add(self, value: T) -> None:
        """Append at the back, growing the storage if needed."""
        if self._count >= len(self._items):
            self._grow()
        self[self._count] = value
        self._count += 1

    def _grow(self) -> None:
        prev_size = len(self._items)
        # Must at least double so the wrapped prefix always fits past the old end
        new_size = prev_size * 2 if prev_size > 0 else 2

        items = self._items + [None] * (new_size - prev_size)
        start = self._start

        if start > 0:
            if start <= (prev_size - 1) // 2:
                # Prefix [0, start) is shorter: move it past the old end
                items[prev_size : prev_size + start] = items[:start]
                items[:start] = [None] * start
            else:
                # Suffix [start, prev_size) is shorter: move it to the new end
                delta = new_size - prev_size
                items[start + delta : new_size] = items[start:prev_size]
                items[start : start + delta] = [None] * delta
                self._start = start + delta

        self._items = items

    def remove_first(self) -> T:
        """Pop the front element.

        Raises:
            IndexError: If the buffer is empty.
        """
        if self._count == 0:
            raise IndexError("remove from empty buffer")
        element = self._items[self._start]
        self._items[self._start] = None

        self._start += 1
        if self._start >= len(self._items):
            self._start = 0

        self._count -= 1
        return element

    def remove_last(self) -> T:
        """Pop the back element.

        Raises:
            IndexError: If the buffer is empty.
        """
        if self._count == 0:
            raise IndexError("remove from empty buffer")
        index = (self._start + self._count - 1) % len(self._items)
        element = self._items[index]
        self._items[index] = None

        self._count -= 1
        return element

    def clear(self) -> None:
        """Drop all elements, keeping capacity."""
        self._items = [None] * len(self._items)
        self._start = 0
        self._count = 0
