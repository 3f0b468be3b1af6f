"""Resolve the thread id a memory instance should use."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from .error_handling import MissingThreadIdError


class ThreadIdSource(str, Enum):
    FROM_INPUT = "fromInput"
    CUSTOM_KEY = "customKey"


def resolve_thread_id(
    source: ThreadIdSource | str = ThreadIdSource.FROM_INPUT,
    key: str = "threadId",
    input_item: Mapping[str, Any] | None = None,
    custom_value: str | None = None,
) -> str:
    """Return the thread id or raise :class:`MissingThreadIdError`.

    ``FROM_INPUT`` reads ``key`` from the upstream input item (a chat trigger
    puts it under ``threadId``); ``CUSTOM_KEY`` uses ``custom_value`` as is.
    """
    source = ThreadIdSource(source)
    if source is ThreadIdSource.FROM_INPUT:
        value = (input_item or {}).get(key)
    else:
        value = custom_value

    thread_id = "" if value is None else str(value).strip()
    if not thread_id:
        raise MissingThreadIdError()
    return thread_id
