"""LangChain memory adapter backed by a Zep thread."""

from __future__ import annotations

from typing import Any

from langchain_core.memory import BaseMemory
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from adapters.base.normalizer import CanonicalMessage, CanonicalRole, format_messages_for_llm
from adapters.base.thread_memory import ZepThreadMemory


def to_langchain_messages(history: list[CanonicalMessage]) -> list[BaseMessage]:
    messages: list[BaseMessage] = []
    for item in history:
        kwargs: dict[str, Any] = {"content": item.content}
        if item.name:
            kwargs["name"] = item.name
        if item.metadata:
            kwargs["additional_kwargs"] = dict(item.metadata)

        if item.role is CanonicalRole.AI:
            messages.append(AIMessage(**kwargs))
        elif item.role is CanonicalRole.SYSTEM:
            messages.append(SystemMessage(**kwargs))
        else:
            messages.append(HumanMessage(**kwargs))
    return messages


class ZepMemory(BaseMemory):
    """Drop-in LangChain memory whose state lives in a Zep thread."""

    thread_memory: ZepThreadMemory

    @property
    def memory_key(self) -> str:
        return self.thread_memory.memory_key

    @property
    def context_key(self) -> str:
        return self.thread_memory.context_key

    @property
    def input_key(self) -> str:
        return self.thread_memory.input_key

    @property
    def output_key(self) -> str:
        return self.thread_memory.output_key

    @property
    def return_messages(self) -> bool:
        return self.thread_memory.return_messages

    @property
    def memory_variables(self) -> list[str]:
        """Return list of memory variable keys."""
        return self.thread_memory.memory_variables

    def _to_variables(self, loaded: dict[str, Any]) -> dict[str, Any]:
        history = loaded["history"]
        if self.return_messages:
            chat_history: Any = to_langchain_messages(history)
        else:
            chat_history = format_messages_for_llm(history)
        return {self.memory_key: chat_history, self.context_key: loaded["context"]}

    async def aload_memory_variables(self, inputs: dict[str, Any]) -> dict[str, Any]:
        """Load the thread's history and context.

        Args:
            inputs: Chain inputs (unused; the thread id fixes what is loaded).

        Returns:
            Dictionary with ``memory_key`` mapped to the conversation history
            and ``context_key`` mapped to the thread's context block.
        """
        return self._to_variables(await self.thread_memory.load())

    def load_memory_variables(self, inputs: dict[str, Any]) -> dict[str, Any]:
        return self._to_variables(self.thread_memory._run(self.thread_memory.load()))

    async def asave_context(self, inputs: dict[str, Any], outputs: dict[str, Any]) -> None:
        """Save this conversation turn to the thread.

        Args:
            inputs: Dictionary containing user input (under ``input_key``)
            outputs: Dictionary containing AI output (under ``output_key``)
        """
        await self.thread_memory.save_context(inputs, outputs)

    def save_context(self, inputs: dict[str, Any], outputs: dict[str, Any]) -> None:
        self.thread_memory._run(self.thread_memory.save_context(inputs, outputs))

    async def aclear(self) -> None:
        """Delete the thread from Zep."""
        await self.thread_memory.clear()

    def clear(self) -> None:
        self.thread_memory._run(self.thread_memory.clear())
