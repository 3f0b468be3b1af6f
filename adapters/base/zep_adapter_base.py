"""Shared base abstractions for Zep memory adapters."""

from __future__ import annotations

import abc
import asyncio
from collections.abc import Coroutine
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .error_handling import MissingThreadIdError
from .log_sink import MemoryLogger, as_safe_logger
from .store import ThreadStore
from .thread_lifecycle import ThreadLifecycleManager


class BaseZepAdapter(abc.ABC):
    """Base class holding the ``(thread_id, user_id, logger)`` triple and the store."""

    def __init__(
        self,
        store: ThreadStore,
        thread_id: str,
        user_id: str | None = None,
        logger: MemoryLogger | None = None,
    ) -> None:
        if not isinstance(thread_id, str) or not thread_id.strip():
            raise MissingThreadIdError()

        self.store = store
        self.thread_id = thread_id.strip()
        self.user_id = (user_id or "").strip() or self.thread_id
        self.logger = as_safe_logger(logger)
        self.lifecycle = ThreadLifecycleManager(store, self.logger)

    def _run(self, coro: Coroutine[Any, Any, Any]) -> Any:
        """Run an async adapter call from sync surfaces.

        The call gets a private event loop, and a store exposing ``aclose``
        is closed before that loop ends.
        """

        async def _once() -> Any:
            try:
                return await coro
            finally:
                closer = getattr(self.store, "aclose", None)
                if closer is not None:
                    await closer()

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(_once())

        # A loop is already running in this thread; drive the coroutine on a
        # private loop in a worker thread instead.
        with ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, _once()).result()

    @abc.abstractmethod
    async def load(self) -> dict[str, Any]:
        """Load context and history for the thread."""

    @abc.abstractmethod
    async def save(self, user_turn: str | None = None, agent_turn: str | None = None) -> None:
        """Append one conversation turn to the thread."""

    @abc.abstractmethod
    async def clear(self) -> None:
        """Delete the thread."""
