"""Normalize provider thread messages into canonical chat-history records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .log_sink import MemoryLogger, as_safe_logger


class CanonicalRole(str, Enum):
    HUMAN = "human"
    AI = "ai"
    SYSTEM = "system"
    TOOL = "tool"
    FUNCTION = "function"


ROLE_TABLE: dict[str, CanonicalRole] = {
    "user": CanonicalRole.HUMAN,
    "human": CanonicalRole.HUMAN,
    "assistant": CanonicalRole.AI,
    "ai": CanonicalRole.AI,
}

# Not replayed into agent memory.
EXCLUDED_ROLES = frozenset({"tool", "function", "system"})

_AUTHORS = {
    CanonicalRole.HUMAN: "user",
    CanonicalRole.AI: "assistant",
}


@dataclass(frozen=True)
class CanonicalMessage:
    role: CanonicalRole
    author: str
    content: str
    name: str | None = None
    metadata: dict[str, Any] | None = None

    @property
    def type(self) -> str:
        return self.role.value


def map_role(raw_role: str) -> tuple[CanonicalRole, bool]:
    """Map a provider role onto the canonical set.

    Returns the canonical role and whether ``raw_role`` was recognized;
    unrecognized roles map to ``human``.
    """
    key = raw_role.strip().lower()
    if key in ROLE_TABLE:
        return ROLE_TABLE[key], True
    return CanonicalRole.HUMAN, False


def derive_author(role: CanonicalRole | str) -> str:
    canonical = role if isinstance(role, CanonicalRole) else CanonicalRole(role)
    return _AUTHORS.get(canonical, canonical.value)


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def _metadata_of(raw: Any) -> dict[str, Any] | None:
    for name in ("metadata", "additional_kwargs"):
        value = _field(raw, name)
        if isinstance(value, Mapping) and value:
            return dict(value)
    return None


def _raw_role(raw: Any) -> str:
    role = _field(raw, "role")
    if isinstance(role, Enum):
        role = role.value
    return role.strip() if isinstance(role, str) else ""


def _is_valid(message: CanonicalMessage) -> bool:
    return (
        isinstance(message.role, CanonicalRole)
        and bool(message.type)
        and bool(message.author)
        and isinstance(message.content, str)
    )


def normalize_message(raw: Any, logger: MemoryLogger | None = None) -> CanonicalMessage | None:
    """Normalize one raw message, or return ``None`` when it is dropped."""
    log = as_safe_logger(logger)

    content = _field(raw, "content")
    if not isinstance(content, str) or not content.strip():
        return None

    raw_role = _raw_role(raw)
    if not raw_role:
        return None
    if raw_role.lower() in EXCLUDED_ROLES:
        return None

    role, known = map_role(raw_role)
    if not known:
        log.warning("Unknown message role, treating as human", role=raw_role)

    name = _field(raw, "name")
    return CanonicalMessage(
        role=role,
        author=derive_author(role),
        content=content,
        name=name.strip() if isinstance(name, str) and name.strip() else None,
        metadata=_metadata_of(raw),
    )


def normalize_messages(
    raw_messages: Iterable[Any] | None,
    logger: MemoryLogger | None = None,
) -> list[CanonicalMessage]:
    """Normalize a raw thread message list.

    Invalid, tool/function and system messages are dropped; the store's order
    is preserved. Normalizing the output again returns it unchanged.
    """
    log = as_safe_logger(logger)
    normalized: list[CanonicalMessage] = []
    for raw in raw_messages or ():
        message = normalize_message(raw, logger=log)
        if message is not None:
            normalized.append(message)

    validated = [message for message in normalized if _is_valid(message)]
    dropped = len(normalized) - len(validated)
    if dropped:
        log.error("Dropped messages that failed validation", dropped=dropped)
    return validated


def format_messages_for_llm(
    messages: Iterable[CanonicalMessage],
    human_prefix: str = "Human",
    ai_prefix: str = "AI",
) -> str:
    lines: list[str] = []
    for message in messages:
        if message.role is CanonicalRole.HUMAN:
            prefix = human_prefix
        elif message.role is CanonicalRole.AI:
            prefix = ai_prefix
        else:
            prefix = message.role.value.title()
        lines.append(f"{prefix}: {message.content}")
    return "\n".join(lines)
