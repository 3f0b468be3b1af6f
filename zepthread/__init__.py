"""Zep thread-store Python SDK public exports."""

from .client import ZepClient
from .config import ZepSettings, get_settings
from .exceptions import AuthenticationError, NotFoundError, RateLimitError, ServerError, ZepError
from .models import Message, Thread, User

__all__ = [
    "ZepClient",
    "ZepSettings",
    "get_settings",
    "ZepError",
    "AuthenticationError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "Message",
    "Thread",
    "User",
]
