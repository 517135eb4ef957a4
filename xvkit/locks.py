"""Mutual-exclusion locks: a non-reentrant spin lock and a sleeping lock.

A thread plays the part of the CPU (for spin locks) or process (for
sleeping locks) that holds the lock.
"""

from __future__ import annotations

import threading


class LockError(RuntimeError):
    """A lock was acquired twice or released without being held."""


class SpinLock:
    """A short-term lock; acquiring it twice from one thread is an error."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self.owner: int | None = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self) -> None:
        if self.holding():
            raise LockError(f"acquire {self.name}")
        self._lock.acquire()
        self.owner = threading.get_ident()

    def release(self) -> None:
        if not self.holding():
            raise LockError(f"release {self.name}")
        self.owner = None
        self._lock.release()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        return self._lock.locked() and self.owner == threading.get_ident()

    def __enter__(self) -> "SpinLock":
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


class SleepLock:
    """A long-term lock; waiters sleep until it is released."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._cond = threading.Condition(threading.Lock())
        self.locked = False
        self.pid = 0

    def acquire(self) -> None:
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = threading.get_ident()

    def release(self) -> None:
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self) -> bool:
        """Whether the calling thread holds the lock."""
        with self._cond:
            return self.locked and self.pid == threading.get_ident()

    def __enter__(self) -> "SleepLock":
        self.acquire()
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()