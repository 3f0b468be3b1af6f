"""Thread-store capability consumed by the memory adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from zepthread.models import Message, Thread


@runtime_checkable
class ThreadStore(Protocol):
    """Remote thread store. ``zepthread.ZepClient`` implements it.

    Failures are raised as exceptions carrying an HTTP-like status code; only
    404 (or a "not found" message) changes the adapter's control flow.
    """

    async def get_thread(self, thread_id: str) -> Thread: ...

    async def get_user_context(self, thread_id: str) -> str: ...

    async def create_user(self, user_id: str) -> Any: ...

    async def create_thread(self, thread_id: str, user_id: str) -> Any: ...

    async def append_messages(self, thread_id: str, messages: Sequence[Message]) -> None: ...

    async def delete_thread(self, thread_id: str) -> None: ...
