"""LangChain adapter package for Zep thread memory."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from adapters.base import LoguruLogger, MemoryLogger, ThreadIdSource, ZepThreadMemory, resolve_thread_id

from .zep_memory import ZepMemory, to_langchain_messages


def create_langchain_memory(
    api_key: str | None = None,
    thread_id: str | None = None,
    user_id: str | None = None,
    *,
    input_item: Mapping[str, Any] | None = None,
    thread_key: str = "threadId",
    base_url: str | None = None,
    logger: MemoryLogger | None = None,
    **kwargs: Any,
) -> ZepMemory:
    """Build a :class:`ZepMemory` for one thread.

    ``thread_id`` wins when given; otherwise it is read from ``input_item``
    under ``thread_key``. A missing thread id or API key raises before any
    request is sent.
    """
    from zepthread import ZepClient

    if thread_id is not None:
        resolved = resolve_thread_id(ThreadIdSource.CUSTOM_KEY, custom_value=thread_id)
    else:
        resolved = resolve_thread_id(ThreadIdSource.FROM_INPUT, key=thread_key, input_item=input_item)

    client = ZepClient(api_key=api_key, base_url=base_url)
    sink = logger if logger is not None else LoguruLogger(thread_id=resolved)
    core = ZepThreadMemory(client, thread_id=resolved, user_id=user_id, logger=sink, **kwargs)
    core.logger.info("Zep memory initialized", thread_id=core.thread_id, user_id=core.user_id)
    return ZepMemory(thread_memory=core)


__all__ = ["ZepMemory", "create_langchain_memory", "to_langchain_messages"]
