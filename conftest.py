from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from zepthread.config import get_settings
from zepthread.exceptions import NotFoundError, ZepError
from zepthread.models import Message, Thread


class StatusError(Exception):
    """Status-coded failure raised by a store that is not the Zep SDK."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class FakeThreadStore:
    """In-memory thread store that records calls and can be scripted to fail."""

    def __init__(self) -> None:
        self.threads: dict[str, list[Message]] = {}
        self.owners: dict[str, str] = {}
        self.users: set[str] = set()
        self.contexts: dict[str, str] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, list[Exception]] = defaultdict(list)
        self.closed = 0
        self.missing_error: Callable[[str], Exception] = lambda thread_id: NotFoundError(
            "thread not found", status_code=404
        )

    def fail(self, operation: str, *errors: Exception) -> None:
        self.failures[operation].extend(errors)

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    def seed(self, thread_id: str, *messages: dict[str, Any], context: str = "") -> None:
        self.threads[thread_id] = [Message.model_validate(m) for m in messages]
        self.contexts[thread_id] = context

    def _maybe_fail(self, operation: str) -> None:
        if self.failures[operation]:
            raise self.failures[operation].pop(0)

    def _require(self, thread_id: str) -> list[Message]:
        if thread_id not in self.threads:
            raise self.missing_error(thread_id)
        return self.threads[thread_id]

    async def get_thread(self, thread_id: str) -> Thread:
        self.calls.append(("get_thread", thread_id))
        self._maybe_fail("get_thread")
        return Thread(thread_id=thread_id, messages=list(self._require(thread_id)))

    async def get_user_context(self, thread_id: str) -> str:
        self.calls.append(("get_user_context", thread_id))
        self._maybe_fail("get_user_context")
        self._require(thread_id)
        return self.contexts.get(thread_id, "")

    async def create_user(self, user_id: str) -> None:
        self.calls.append(("create_user", user_id))
        self._maybe_fail("create_user")
        if user_id in self.users:
            raise ZepError("user already exists", status_code=400)
        self.users.add(user_id)

    async def create_thread(self, thread_id: str, user_id: str) -> None:
        self.calls.append(("create_thread", thread_id, user_id))
        self._maybe_fail("create_thread")
        if thread_id in self.threads:
            raise ZepError("thread already exists", status_code=409)
        self.threads[thread_id] = []
        self.owners[thread_id] = user_id

    async def append_messages(self, thread_id: str, messages: Sequence[Message]) -> None:
        self.calls.append(("append_messages", thread_id, [m.model_copy() for m in messages]))
        self._maybe_fail("append_messages")
        self._require(thread_id).extend(m.model_copy() for m in messages)

    async def delete_thread(self, thread_id: str) -> None:
        self.calls.append(("delete_thread", thread_id))
        self._maybe_fail("delete_thread")
        self._require(thread_id)
        del self.threads[thread_id]

    async def aclose(self) -> None:
        self.closed += 1


class RecordingLogger:
    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, message: str, meta: dict[str, Any]) -> None:
        self.records.append((level, message, meta))

    def debug(self, message: str, **meta: Any) -> None:
        self._record("debug", message, meta)

    def info(self, message: str, **meta: Any) -> None:
        self._record("info", message, meta)

    def warning(self, message: str, **meta: Any) -> None:
        self._record("warning", message, meta)

    def error(self, message: str, **meta: Any) -> None:
        self._record("error", message, meta)

    def messages(self, level: str) -> list[str]:
        return [message for lvl, message, _ in self.records if lvl == level]


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("ZEP_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_store() -> FakeThreadStore:
    return FakeThreadStore()


@pytest.fixture
def uncoded_store() -> FakeThreadStore:
    """Store that reports a missing thread only through the error message."""
    store = FakeThreadStore()
    store.missing_error = lambda thread_id: RuntimeError(f"Thread {thread_id} not found")
    return store


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def status_error() -> type[StatusError]:
    return StatusError
