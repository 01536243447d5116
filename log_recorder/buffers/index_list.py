"""Append-only growable array for occurrence histories."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import numpy as np
import numpy.typing as npt

from ..common.constants import INDEX_LIST_INITIAL_CAPACITY


class IndexList:
    """Growable array with O(1) amortized append and O(1) clear.

    Storage is a numpy array of the given dtype, doubled on overflow.
    """

    def __init__(
        self,
        dtype: npt.DTypeLike = np.int64,
        initial_capacity: int = INDEX_LIST_INITIAL_CAPACITY,
    ) -> None:
        self._items: npt.NDArray[Any] = np.empty(max(initial_capacity, 1), dtype=dtype)
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return len(self._items)

    def _check_index(self, index: int) -> int:
        if index < 0:
            index += self._size
        if not 0 <= index < self._size:
            raise IndexError("index out of range")
        return index

    def __getitem__(self, index: int) -> Any:
        value = self._items[self._check_index(index)]
        # Hand back plain Python ints rather than numpy scalars
        return value.item() if isinstance(value, np.generic) else value

    def __setitem__(self, index: int, value: Any) -> None:
        self._items[self._check_index(index)] = value

    def __iter__(self) -> Iterator[Any]:
        for i in range(self._size):
            yield self[i]

    def add(self, value: Any) -> None:
        if self._size == len(self._items):
            items = np.empty(self._size * 2, dtype=self._items.dtype)
            items[: self._size] = self._items
            self._items = items

        self._items[self._size] = value
        self._size += 1

    def clear(self) -> None:
        self._size = 0

    def index_of(self, value: Any) -> int:
        """Position of the first element equal to value, or -1."""
        matches = np.flatnonzero(self._items[: self._size] == value)
        return int(matches[0]) if len(matches) else -1

    def to_list(self) -> list[Any]:
        return self._items[: self._size].tolist()
