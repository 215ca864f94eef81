"""
karmabot.engine.locks — Per-identity serialization
===================================================

A grant touches several keys (quota counter, last-grant timestamp, both
balances, history) with no transaction around them.  :class:`KeyedLock`
serializes every grant that involves the same member so two concurrent
replies from one giver can't both spend the last quota point.

Thread-safe.  Locks for idle identities are dropped once nobody holds or
waits on them.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock


@dataclass
class _Slot:
    lock: Lock = field(default_factory=Lock)
    users: int = 0


class KeyedLock:
    """A mutex per identity, acquired in sorted order to avoid deadlocks."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._slots: dict[str, _Slot] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        """Hold the locks of every key in *keys* for the duration of the block."""
        ordered = sorted({str(k) for k in keys})

        with self._guard:
            slots = []
            for key in ordered:
                slot = self._slots.setdefault(key, _Slot())
                slot.users += 1
                slots.append(slot)

        acquired: list[_Slot] = []
        try:
            for slot in slots:
                slot.lock.acquire()
                acquired.append(slot)
            yield
        finally:
            for slot in reversed(acquired):
                slot.lock.release()
            with self._guard:
                for key, slot in zip(ordered, slots):
                    slot.users -= 1
                    if slot.users == 0:
                        del self._slots[key]
