"""Per-habit locks serializing completion writes inside one process."""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator


class HabitLockRegistry:
    """Hands out one lock per habit id.

    Only completion and uncompletion writes take these locks; reads never do.
    Habits do not share locks, so writes to different habits run in parallel.
    A habit's lock is dropped from the registry once nobody holds or waits on it.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: Dict[int, Lock] = {}
        self._holders: Dict[int, int] = {}

    def lock_for(self, habit_id: int) -> Lock:
        with self._guard:
            lock = self._locks.get(habit_id)
            if lock is None:
                lock = self._locks[habit_id] = Lock()
            return lock

    @contextmanager
    def hold(self, habit_id: int) -> Iterator[None]:
        """Hold the habit's lock for the duration of the block."""

        with self._guard:
            lock = self._locks.get(habit_id)
            if lock is None:
                lock = self._locks[habit_id] = Lock()
            self._holders[habit_id] = self._holders.get(habit_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[habit_id] -= 1
                if not self._holders[habit_id]:
                    del self._holders[habit_id]
                    self._locks.pop(habit_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["HabitLockRegistry"]
