"""Error classification and translation shared by the adapter operations."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from zepthread.exceptions import NotFoundError, ZepError, exception_for_status

T = TypeVar("T")

NOT_FOUND_TOKENS = ("not found", "not_found", "notfound", "does not exist")


class MissingThreadIdError(ValueError):
    """Raised before any remote call when no thread id could be resolved."""

    def __init__(self, message: str = "Thread ID is required. Please provide a valid thread ID.") -> None:
        super().__init__(message)


def _status_of(err: BaseException) -> int | None:
    if isinstance(err, ZepError):
        return err.status_code
    if isinstance(err, httpx.HTTPStatusError):
        return err.response.status_code
    for attr in ("status_code", "status", "statusCode"):
        value = getattr(err, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _message_of(err: BaseException) -> str:
    if isinstance(err, ZepError):
        return err.original_message or err.message
    return str(err) or err.__class__.__name__


def _has_not_found_token(message: str) -> bool:
    lowered = message.lower()
    return any(token in lowered for token in NOT_FOUND_TOKENS)


def is_not_found(err: BaseException) -> bool:
    """True when ``err`` means the addressed remote entity does not exist."""
    if isinstance(err, NotFoundError):
        return True
    status = _status_of(err)
    if status is not None:
        return status == 404
    return _has_not_found_token(_message_of(err))


def is_transport_error(err: BaseException) -> bool:
    """True when ``err`` maps onto the SDK taxonomy, uncoded not-found messages included."""
    if isinstance(err, (ZepError, httpx.HTTPError)) or _status_of(err) is not None:
        return True
    return _has_not_found_token(_message_of(err))


def translate_error(err: BaseException) -> ZepError:
    """Map a status-coded failure onto the SDK taxonomy.

    The original status and message stay available as ``status_code`` and
    ``details["original_message"]``.
    """
    if isinstance(err, ZepError):
        return err

    status = _status_of(err)
    original = _message_of(err)
    if status is None and _has_not_found_token(original):
        exc_type: type[ZepError] = NotFoundError
    else:
        exc_type = exception_for_status(status)

    if status is not None:
        message = f"{exc_type.summary} Remote store responded with status {status}: {original}"
    else:
        message = f"{exc_type.summary} {original}"
    translated = exc_type(message, status_code=status, details={"original_message": original})
    translated.__cause__ = err
    return translated


async def call_store(awaitable: Awaitable[T]) -> T:
    """Await a thread-store call, translating transport failures."""
    try:
        return await awaitable
    except ZepError:
        raise
    except Exception as err:
        if is_transport_error(err):
            raise translate_error(err) from err
        raise


def describe_error(err: BaseException) -> dict[str, Any]:
    """Diagnostic fields for log lines."""
    translated = translate_error(err) if is_transport_error(err) else None
    if translated is None:
        return {"error": str(err), "error_type": err.__class__.__name__}
    return {
        "error": translated.message,
        "error_type": translated.__class__.__name__,
        "status_code": translated.status_code,
        "original_message": translated.original_message,
    }


def absorb_not_found(
    default_value: Any = None,
) -> Callable[[Callable[..., Awaitable[Any]]], Callable[..., Awaitable[Any]]]:
    """Turn a not-found failure of an async adapter method into ``default_value``.

    Every other failure propagates. A callable default is called to build a
    fresh value for each absorbed failure.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await fn(*args, **kwargs)
            except ZepError as err:
                if not is_not_found(err):
                    raise
                adapter = args[0] if args else None
                log = getattr(adapter, "logger", None)
                if log is not None:
                    log.info(
                        f"{fn.__name__}: remote thread not found, returning default",
                        adapter=adapter.__class__.__name__,
                        **describe_error(err),
                    )
                return default_value() if callable(default_value) else default_value

        return wrapper

    return decorator
