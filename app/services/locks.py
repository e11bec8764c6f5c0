"""Per-key locks serializing admissions for the same amenity and day."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _Entry:
    lock: Lock = field(default_factory=Lock)
    holders: int = 0  # threads holding or waiting on ``lock``


class KeyedLocks:
    """Hands out one lock per key; callers with different keys never block each other.

    An entry lives only while some caller holds or waits on it, so the map
    stays bounded by the number of keys in use.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._entries: dict[Hashable, _Entry] = {}

    @contextmanager
    def hold(self, *key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, _Entry())
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
