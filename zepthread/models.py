"""Pydantic models used by the Zep thread-store SDK."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """A thread message as the store returns it.

    The provider schema varies, so every field is optional and unknown fields
    are kept. Filtering happens in the message normalizer, not here.
    """

    model_config = ConfigDict(extra="allow")

    uuid: str | None = None
    role: str | None = None
    content: Any = None
    name: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name:
            payload["name"] = self.name
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


class Thread(BaseModel):
    thread_id: str
    user_id: str | None = None
    messages: list[Message] = Field(default_factory=list)
    total_count: int | None = None


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    user_id: str
    created_at: str | None = None
