from __future__ import annotations

import contextvars
import logging
import queue
import threading
import time
from collections.abc import Callable

from .store_client import MemoryStoreError

logger = logging.getLogger(__name__)

_Item = tuple[str, contextvars.Context, Callable[[], object]]


class MemoryOutbox:
    """FIFO of detached memory-store writes drained by one daemon thread.

    Callers never wait on delivery. Each action runs in a copy of the
    publisher's context so log lines keep the turn identifiers.
    """

    def __init__(self, name: str = "symbiosis-outbox") -> None:
        self.name = name
        self._queue: queue.Queue[_Item | None] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._closed = False

    def publish(self, label: str, action: Callable[[], object]) -> None:
        if self._closed:
            logger.warning("Outbox closed; dropping %s", label)
            return
        self._ensure_worker()
        self._queue.put((label, contextvars.copy_context(), action))

    def _ensure_worker(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
                self._thread.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                label, context, action = item
                try:
                    context.run(action)
                except MemoryStoreError as exc:
                    context.run(logger.warning, "Detached %s failed: %s", label, exc)
                except Exception:
                    context.run(logger.exception, "Detached %s crashed", label)
            finally:
                self._queue.task_done()

    def drain(self, timeout: float | None = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def close(self, timeout: float = 5.0) -> None:
        self._closed = True
        if self._thread is not None and self._thread.is_alive():
            self._queue.put(None)
            self._thread.join(timeout)
