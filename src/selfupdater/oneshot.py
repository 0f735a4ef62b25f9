"""Single-assignment result delivery between threads.

``OneShot`` is written at most once (first write wins) and read at most once.
``race`` bounds the wait on a background future without cancelling it.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Generic, TypeVar

T = TypeVar("T")

_UNSET = object()


class OneShot(Generic[T]):
    """A slot that holds exactly one value."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._value: object = _UNSET
        self._taken = False

    def offer(self, value: T) -> bool:
        """Store *value* unless a value is already present.

        Returns True if this call won; later offers are ignored.
        """
        with self._lock:
            if self._value is not _UNSET:
                return False
            self._value = value
        self._ready.set()
        return True

    def wait(self, timeout: float | None = None) -> T:
        """Block until a value is present and return it without consuming it.

        Raises ``TimeoutError`` if *timeout* elapses first.
        """
        if not self._ready.wait(timeout):
            raise TimeoutError("no value was published in time")
        return self._value  # type: ignore[return-value]

    def take(self) -> T:
        """Block until a value is present and consume it.

        The value can be taken once; a second take raises ``RuntimeError``.
        """
        with self._lock:
            if self._taken:
                raise RuntimeError("value has already been consumed")
            self._taken = True
        return self.wait()


def race(future: Future[T], timeout: float, on_timeout: T) -> tuple[T, bool]:
    """Wait for *future* for at most *timeout* seconds.

    Returns ``(value, timed_out)``. When the timer wins, *on_timeout* is
    returned and the future keeps running; its result is never read.
    Exceptions raised by the future propagate.
    """
    try:
        return future.result(timeout=timeout), False
    except FutureTimeoutError:
        return on_timeout, True
