"""Agent memory backed by a remote Zep thread."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypedDict

from zepthread.exceptions import AuthenticationError, ZepError
from zepthread.models import Message

from .error_handling import absorb_not_found, call_store, describe_error
from .log_sink import MemoryLogger
from .normalizer import CanonicalMessage, CanonicalRole, derive_author, normalize_messages
from .store import ThreadStore
from .zep_adapter_base import BaseZepAdapter


class MemoryVariables(TypedDict):
    context: str
    history: list[CanonicalMessage]


def _empty_result() -> MemoryVariables:
    return {"context": "", "history": []}


class ZepThreadMemory(BaseZepAdapter):
    """``load`` / ``save`` / ``clear`` over one remote thread.

    The thread is created on first use. A missing thread loads as empty
    memory and clears as a no-op; a save against a missing thread creates it
    and retries the append once.
    """

    def __init__(
        self,
        store: ThreadStore,
        thread_id: str,
        user_id: str | None = None,
        logger: MemoryLogger | None = None,
        *,
        memory_key: str = "chat_history",
        context_key: str = "context",
        input_key: str = "input",
        output_key: str = "output",
        return_messages: bool = True,
    ) -> None:
        super().__init__(store, thread_id=thread_id, user_id=user_id, logger=logger)
        self._memory_key = memory_key
        self._context_key = context_key
        self._input_key = input_key
        self._output_key = output_key
        self._return_messages = return_messages

    @property
    def memory_key(self) -> str:
        return self._memory_key

    @property
    def context_key(self) -> str:
        return self._context_key

    @property
    def input_key(self) -> str:
        return self._input_key

    @property
    def output_key(self) -> str:
        return self._output_key

    @property
    def return_messages(self) -> bool:
        return self._return_messages

    @property
    def memory_variables(self) -> list[str]:
        return [self._memory_key, self._context_key]

    @absorb_not_found(default_value=_empty_result)
    async def load(self) -> MemoryVariables:
        """Return the thread's context block and normalized history.

        Context and history fall back to empty values when their fetch fails;
        authentication failures always propagate.
        """
        await self.lifecycle.ensure_exists(self.thread_id, self.user_id)
        context = await self._fetch_context()
        raw_messages = await self._fetch_messages()
        history = normalize_messages(raw_messages, logger=self.logger)

        self.logger.debug(
            "Loaded thread memory",
            thread_id=self.thread_id,
            raw_messages=len(raw_messages),
            messages=len(history),
            has_context=bool(context),
        )
        return {"context": context, "history": history}

    async def save(self, user_turn: Any = None, agent_turn: Any = None) -> None:
        """Append the user turn then the agent turn, skipping blank ones."""
        messages = self._build_turn(user_turn, agent_turn)
        if not messages:
            self.logger.debug("Nothing to save", thread_id=self.thread_id)
            return

        await self.lifecycle.run_with_recovery(
            self.thread_id,
            self.user_id,
            lambda: call_store(self.store.append_messages(self.thread_id, messages)),
        )
        self.logger.debug("Saved messages", thread_id=self.thread_id, count=len(messages))

    @absorb_not_found()
    async def clear(self) -> None:
        await call_store(self.store.delete_thread(self.thread_id))
        self.logger.info("Thread deleted", thread_id=self.thread_id)

    async def load_memory_variables(self, inputs: Mapping[str, Any] | None = None) -> dict[str, Any]:
        result = await self.load()
        return {
            self._memory_key: result["history"],
            self._context_key: result["context"],
        }

    async def save_context(self, inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> None:
        await self.save(inputs.get(self._input_key), outputs.get(self._output_key))

    async def _fetch_context(self) -> str:
        try:
            context = await call_store(self.store.get_user_context(self.thread_id))
        except AuthenticationError:
            raise
        except ZepError as err:
            self.logger.debug("No context available", thread_id=self.thread_id, **describe_error(err))
            return ""
        return context if isinstance(context, str) else ""

    async def _fetch_messages(self) -> Sequence[Any]:
        try:
            thread = await call_store(self.store.get_thread(self.thread_id))
        except AuthenticationError:
            raise
        except ZepError as err:
            self.logger.error("Failed to fetch thread messages", thread_id=self.thread_id, **describe_error(err))
            return []
        messages = getattr(thread, "messages", None)
        return list(messages) if messages else []

    @staticmethod
    def _build_turn(user_turn: Any, agent_turn: Any) -> list[Message]:
        messages: list[Message] = []
        for role, turn in ((CanonicalRole.HUMAN, user_turn), (CanonicalRole.AI, agent_turn)):
            if turn is None:
                continue
            text = turn if isinstance(turn, str) else str(turn)
            if text.strip():
                messages.append(Message(role=derive_author(role), content=text))
        return messages
