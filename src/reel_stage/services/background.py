"""Detached post-commit work.

Index notifications and asset cleanup run here after the triggering
transaction has committed. A task's outcome is only logged; nothing flows
back to the request that scheduled it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from functools import lru_cache
from typing import Any

from reel_stage.core.settings import settings

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    """Thread pool for fire-and-forget tasks with a logging error channel."""

    def __init__(self, max_workers: int | None = None) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, int(max_workers or settings.background_workers)),
            thread_name_prefix="reel-bg",
        )
        self._pending: set[Future[Any]] = set()
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Schedule ``fn`` and return immediately.

        Failures are logged under ``operation`` and never re-raised.
        """
        with self._lock:
            if self._closed:
                logger.warning("%s: dispatcher closed, task dropped", operation)
                return
            future = self._executor.submit(self._run, operation, fn, args, kwargs)
            self._pending.add(future)
        future.add_done_callback(self._forget)

    @staticmethod
    def _run(
        operation: str,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        try:
            fn(*args, **kwargs)
        except Exception as exc:
            logger.error("%s: background task failed: %s", operation, exc, exc_info=True)

    def _forget(self, future: Future[Any]) -> None:
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: float | None = None) -> None:
        """Block until every task scheduled so far has finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self, wait_for_tasks: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait_for_tasks)


@lru_cache(maxsize=1)
def get_dispatcher() -> BackgroundDispatcher:
    """Return the process-wide dispatcher."""
    return BackgroundDispatcher()
