"""
callshield/call/scheduler.py
=============================
Backup timer — CallShield

A daemon thread that calls ``callback`` after ``initial_delay`` seconds and
then every ``interval`` seconds until cancelled. A failing tick is logged
and the schedule continues.
"""

import logging
import threading
from typing import Callable, Protocol

logger = logging.getLogger("callshield.call.scheduler")


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, float, Callable[[], None]], Timer]


class RepeatingTimer:
    def __init__(
        self,
        initial_delay: float,
        interval: float,
        callback: Callable[[], None],
        name: str = "backup-timer",
    ) -> None:
        self._initial_delay = initial_delay
        self._interval = interval
        self._callback = callback
        self._cancelled = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self, timeout: float | None = 5.0) -> None:
        """
        Stop the schedule. When called from another thread, waits for any
        in-flight tick to finish before returning.
        """
        self._cancelled.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _run(self) -> None:
        if self._cancelled.wait(self._initial_delay):
            return
        while True:
            try:
                self._callback()
            except Exception as exc:
                logger.error("Backup tick failed: %s", exc, exc_info=True)
            if self._cancelled.wait(self._interval):
                return
