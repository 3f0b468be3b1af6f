"""Shared base classes and utilities for Zep memory adapters."""

from .error_handling import (
    MissingThreadIdError,
    absorb_not_found,
    call_store,
    is_not_found,
    translate_error,
)
from .log_sink import LoguruLogger, MemoryLogger, NullLogger, SafeLogger, configure_logging
from .normalizer import (
    CanonicalMessage,
    CanonicalRole,
    derive_author,
    format_messages_for_llm,
    map_role,
    normalize_messages,
)
from .store import ThreadStore
from .thread_id import ThreadIdSource, resolve_thread_id
from .thread_lifecycle import NotFoundRecovery, RecoveryState, ThreadLifecycleManager
from .thread_memory import MemoryVariables, ZepThreadMemory
from .zep_adapter_base import BaseZepAdapter

__all__ = [
    "BaseZepAdapter",
    "ZepThreadMemory",
    "MemoryVariables",
    "ThreadStore",
    "ThreadLifecycleManager",
    "NotFoundRecovery",
    "RecoveryState",
    "CanonicalMessage",
    "CanonicalRole",
    "normalize_messages",
    "map_role",
    "derive_author",
    "format_messages_for_llm",
    "MissingThreadIdError",
    "absorb_not_found",
    "call_store",
    "is_not_found",
    "translate_error",
    "MemoryLogger",
    "NullLogger",
    "LoguruLogger",
    "SafeLogger",
    "configure_logging",
    "ThreadIdSource",
    "resolve_thread_id",
]
