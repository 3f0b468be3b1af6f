"""Create-on-demand thread lifecycle and the bounded not-found recovery."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Generic, TypeVar

from zepthread.exceptions import ZepError

from .error_handling import call_store, describe_error, is_not_found
from .log_sink import MemoryLogger, as_safe_logger
from .store import ThreadStore

T = TypeVar("T")


class RecoveryState(str, Enum):
    ATTEMPTED = "attempted"
    FAILED_NOT_FOUND = "failed_not_found"
    RECOVERING = "recovering"
    RETRIED = "retried"
    SUCCEEDED = "succeeded"
    FAILED_FINAL = "failed_final"


class NotFoundRecovery(Generic[T]):
    """Run an attempt; on not-found run ``recover`` once and retry once.

    ``ATTEMPTED -> FAILED_NOT_FOUND -> RECOVERING -> RETRIED -> SUCCEEDED | FAILED_FINAL``.
    Failures other than not-found go straight to ``FAILED_FINAL``. The visited
    states are kept in ``states``.
    """

    def __init__(
        self,
        attempt: Callable[[], Awaitable[T]],
        recover: Callable[[], Awaitable[object]],
    ) -> None:
        self._attempt = attempt
        self._recover = recover
        self.states: list[RecoveryState] = []

    @property
    def state(self) -> RecoveryState | None:
        return self.states[-1] if self.states else None

    def _enter(self, state: RecoveryState) -> None:
        self.states.append(state)

    async def _try(self) -> tuple[T | None, Exception | None]:
        try:
            return await self._attempt(), None
        except Exception as err:
            return None, err

    async def run(self) -> T:
        self._enter(RecoveryState.ATTEMPTED)
        result, error = await self._try()
        if error is None:
            self._enter(RecoveryState.SUCCEEDED)
            return result  # type: ignore[return-value]
        if not is_not_found(error):
            self._enter(RecoveryState.FAILED_FINAL)
            raise error

        self._enter(RecoveryState.FAILED_NOT_FOUND)
        self._enter(RecoveryState.RECOVERING)
        await self._recover()

        self._enter(RecoveryState.RETRIED)
        result, error = await self._try()
        if error is None:
            self._enter(RecoveryState.SUCCEEDED)
            return result  # type: ignore[return-value]
        self._enter(RecoveryState.FAILED_FINAL)
        raise error


class ThreadLifecycleManager:
    """Make sure a thread and its owning user exist before it is used."""

    def __init__(self, store: ThreadStore, logger: MemoryLogger | None = None) -> None:
        self.store = store
        self.logger = as_safe_logger(logger)

    async def ensure_exists(self, thread_id: str, user_id: str | None = None) -> None:
        """Probe the thread and create it when the store reports it missing.

        Probe errors other than not-found are treated as "exists or unknown".
        Creation failures are logged, not raised; the caller's next read or
        write reports the real problem if the thread is still unusable.
        """
        owner = user_id or thread_id
        try:
            await call_store(self.store.get_thread(thread_id))
        except ZepError as err:
            if not is_not_found(err):
                self.logger.debug(
                    "Thread probe failed, continuing without creating",
                    thread_id=thread_id,
                    **describe_error(err),
                )
                return
        else:
            return

        self.logger.info("Thread not found, creating it", thread_id=thread_id, user_id=owner)
        await self.create(thread_id, owner)

    async def create(self, thread_id: str, user_id: str) -> bool:
        """Register ``user_id`` (errors ignored) and create the thread once."""
        try:
            await call_store(self.store.create_user(user_id))
        except ZepError as err:
            self.logger.debug("User registration skipped", user_id=user_id, **describe_error(err))

        try:
            await call_store(self.store.create_thread(thread_id, user_id))
        except ZepError as err:
            self.logger.error("Thread creation failed", thread_id=thread_id, **describe_error(err))
            return False

        self.logger.info("Thread created", thread_id=thread_id, user_id=user_id)
        return True

    async def run_with_recovery(
        self,
        thread_id: str,
        user_id: str | None,
        attempt: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``attempt`` with one ensure-exists-and-retry on not-found."""
        recovery: NotFoundRecovery[T] = NotFoundRecovery(
            attempt,
            lambda: self.ensure_exists(thread_id, user_id),
        )
        try:
            return await recovery.run()
        finally:
            self.logger.debug(
                "Recovery finished",
                thread_id=thread_id,
                states=[state.value for state in recovery.states],
            )
