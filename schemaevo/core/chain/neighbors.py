from __future__ import annotations

from bisect import bisect_left, bisect_right, insort
from typing import Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

V = TypeVar("V")


class OrderedMap(Generic[V]):
    """Integer-keyed map kept in key order (sorted key vector + binary search).

    Given keys 1, 3 and 5, `neighbors` returns:

    - key 0: (None, v1)
    - key 2: (v1, v3)
    - key 4: (v3, v5)
    - key 6: (v5, None)

    The queried key itself is never returned as its own neighbour.
    """

    def __init__(self) -> None:
        self._keys: List[int] = []
        self._values: Dict[int, V] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._keys))

    def insert(self, key: int, value: V) -> None:
        if key not in self._values:
            insort(self._keys, key)
        self._values[key] = value

    def get(self, key: int) -> Optional[V]:
        return self._values.get(key)

    def items(self) -> List[Tuple[int, V]]:
        return [(k, self._values[k]) for k in self._keys]

    def lower(self, key: int) -> Optional[Tuple[int, V]]:
        idx = bisect_left(self._keys, key)
        if idx == 0:
            return None
        k = self._keys[idx - 1]
        return k, self._values[k]

    def upper(self, key: int) -> Optional[Tuple[int, V]]:
        idx = bisect_right(self._keys, key)
        if idx >= len(self._keys):
            return None
        k = self._keys[idx]
        return k, self._values[k]

    def neighbors(self, key: int) -> Tuple[Optional[V], Optional[V]]:
        lo = self.lower(key)
        hi = self.upper(key)
        return (lo[1] if lo else None, hi[1] if hi else None)
