"""Injectable logging sinks for the memory adapter."""

from __future__ import annotations

import sys
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from zepthread.config import get_settings


@runtime_checkable
class MemoryLogger(Protocol):
    """Leveled logging capability the adapter writes to."""

    def debug(self, message: str, **meta: Any) -> None: ...

    def info(self, message: str, **meta: Any) -> None: ...

    def warning(self, message: str, **meta: Any) -> None: ...

    def error(self, message: str, **meta: Any) -> None: ...


class NullLogger:
    """Sink that discards everything."""

    def debug(self, message: str, **meta: Any) -> None:
        pass

    def info(self, message: str, **meta: Any) -> None:
        pass

    def warning(self, message: str, **meta: Any) -> None:
        pass

    def error(self, message: str, **meta: Any) -> None:
        pass


class LoguruLogger:
    """Sink writing to loguru with the metadata bound as ``extra`` fields."""

    def __init__(self, **context: Any) -> None:
        self._logger = logger.bind(component="zep_memory", **context)

    def debug(self, message: str, **meta: Any) -> None:
        self._logger.bind(**meta).debug(message)

    def info(self, message: str, **meta: Any) -> None:
        self._logger.bind(**meta).info(message)

    def warning(self, message: str, **meta: Any) -> None:
        self._logger.bind(**meta).warning(message)

    def error(self, message: str, **meta: Any) -> None:
        self._logger.bind(**meta).error(message)


class SafeLogger:
    """Best-effort wrapper: a failing sink never breaks the caller.

    Sinks without a ``warning`` method receive warnings through ``info``.
    """

    _fallbacks = {"warning": "info"}

    def __init__(self, sink: MemoryLogger | None = None) -> None:
        self._sink: MemoryLogger = sink if sink is not None else NullLogger()

    def _emit(self, level: str, message: str, meta: dict[str, Any]) -> None:
        method = getattr(self._sink, level, None)
        if not callable(method) and level in self._fallbacks:
            method = getattr(self._sink, self._fallbacks[level], None)
        if not callable(method):
            return
        try:
            method(message, **meta)
        except Exception:
            pass

    def debug(self, message: str, **meta: Any) -> None:
        self._emit("debug", message, meta)

    def info(self, message: str, **meta: Any) -> None:
        self._emit("info", message, meta)

    def warning(self, message: str, **meta: Any) -> None:
        self._emit("warning", message, meta)

    def error(self, message: str, **meta: Any) -> None:
        self._emit("error", message, meta)


def as_safe_logger(sink: MemoryLogger | None) -> SafeLogger:
    if isinstance(sink, SafeLogger):
        return sink
    return SafeLogger(sink)


def configure_logging(level: str | None = None) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or get_settings().log_level).upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message} | {extra}",
    )
