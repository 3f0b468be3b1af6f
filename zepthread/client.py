"""Core Zep thread-store client implementation."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import get_settings
from .exceptions import AuthenticationError, ServerError, ZepError, exception_for_status
from .models import Message, Thread, User


class _RetryableServerError(ServerError):
    """Internal exception used to trigger retries for transient failures."""


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.debug(
        "Retrying Zep request",
        attempt=retry_state.attempt_number,
        error=str(error) if error else None,
    )


class ZepClient:
    """Zep thread-store API client with async-first APIs and a sync wrapper.

    Implements the ``ThreadStore`` protocol consumed by the memory adapter.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        api_prefix: str | None = None,
    ) -> None:
        settings = get_settings()
        resolved_api_key = api_key or (
            settings.api_key.get_secret_value() if settings.api_key is not None else None
        )
        if not resolved_api_key:
            raise AuthenticationError(
                "Missing API key. Pass `api_key=` or set ZEP_API_KEY environment variable."
            )

        self.api_key = resolved_api_key
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.api_prefix = "/" + (api_prefix if api_prefix is not None else settings.api_prefix).strip("/")
        self.timeout = timeout if timeout is not None else settings.timeout
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.history_lastn = settings.history_lastn
        self._client: httpx.AsyncClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    async def __aenter__(self) -> "ZepClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.aclose()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Api-Key {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            headers=self.headers,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        if self._client is not None and self._loop is not None and self._loop is not loop:
            # Pooled connections belong to the loop that opened them.
            stale, self._client = self._client, None
            try:
                await stale.aclose()
            except RuntimeError as err:
                logger.debug("Closing HTTP client from a finished event loop failed", error=str(err))
        self._loop = loop
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def aclose(self) -> None:
        """Close underlying HTTP resources for the async client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def arequest(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Perform a raw API request and return the decoded JSON body.

        Args:
            method: HTTP method name, such as ``"GET"`` or ``"POST"``.
            path: API path relative to ``api_prefix``.
            params: Optional query parameters.
            json: Optional JSON request body.

        Returns:
            The deserialized response object; ``{}`` for empty bodies.
        """
        client = await self._ensure_client()
        url = f"{self.api_prefix}/{path.lstrip('/')}"

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries + 1),
                wait=wait_exponential(multiplier=1, min=1, max=4),
                retry=retry_if_exception_type((_RetryableServerError, httpx.TimeoutException)),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    response = await client.request(method=method, url=url, params=params, json=json)
                    if 500 <= response.status_code <= 599:
                        exc = self._to_exception(response)
                        raise _RetryableServerError(
                            exc.message,
                            status_code=response.status_code,
                            code=exc.code,
                            details=exc.details,
                        )

                    if response.status_code >= 400:
                        raise self._to_exception(response)

                    if not response.content:
                        return {}

                    try:
                        body = response.json()
                    except ValueError as err:
                        raise ServerError(
                            "Failed to parse JSON response from Zep API.",
                            status_code=response.status_code,
                        ) from err

                    if isinstance(body, dict):
                        return body

                    raise ServerError(
                        "Unexpected response type returned by Zep API.",
                        status_code=response.status_code,
                    )
        except httpx.TimeoutException as err:
            raise ServerError(
                "Request to Zep API timed out.",
                code="TIMEOUT",
                details={"original_message": str(err)},
            ) from err
        except _RetryableServerError as err:
            raise ServerError(
                err.message,
                status_code=err.status_code,
                code=err.code,
                details=err.details,
            ) from err
        except httpx.HTTPError as err:
            raise ServerError(
                "HTTP communication error with Zep API.",
                details={"original_message": str(err)},
            ) from err

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Synchronous wrapper over :meth:`arequest` using ``asyncio.run()``.

        The HTTP client is closed before the private event loop ends.
        """

        async def _once() -> dict[str, Any]:
            try:
                return await self.arequest(method, path, params=params, json=json)
            finally:
                await self.aclose()

        return asyncio.run(_once())

    async def get_thread(self, thread_id: str, lastn: int | None = None) -> Thread:
        """Fetch a thread and its most recent messages.

        Args:
            thread_id: The target thread identifier.
            lastn: Number of most recent messages to return; defaults to the
                ``history_lastn`` setting.

        Returns:
            A :class:`~zepthread.models.Thread` with messages in store order.
        """
        self._require_non_empty(thread_id, "thread_id")
        limit = lastn if lastn is not None else self.history_lastn
        if limit < 1:
            raise ValueError("lastn must be greater than 0")

        data = await self.arequest("GET", f"/threads/{thread_id}", params={"lastn": limit})
        messages = data.get("messages")
        if messages is None:
            messages = []
        if not isinstance(messages, list):
            raise ServerError("Invalid thread payload returned by Zep API.")

        return Thread(
            thread_id=thread_id,
            messages=[Message.model_validate(item) for item in messages if isinstance(item, dict)],
            total_count=data.get("total_count") if isinstance(data.get("total_count"), int) else None,
        )

    async def get_user_context(self, thread_id: str) -> str:
        """Return the context block for a thread (``""`` when none yet)."""
        self._require_non_empty(thread_id, "thread_id")
        data = await self.arequest("GET", f"/threads/{thread_id}/context")
        context = data.get("context")
        return context if isinstance(context, str) else ""

    async def create_user(self, user_id: str) -> User:
        """Register the identity that owns threads."""
        self._require_non_empty(user_id, "user_id")
        data = await self.arequest("POST", "/users", json={"user_id": user_id})
        return User.model_validate({**data, "user_id": data.get("user_id") or user_id})

    async def create_thread(self, thread_id: str, user_id: str) -> Thread:
        """Create a thread bound to ``user_id``."""
        self._require_non_empty(thread_id, "thread_id")
        self._require_non_empty(user_id, "user_id")
        await self.arequest("POST", "/threads", json={"thread_id": thread_id, "user_id": user_id})
        return Thread(thread_id=thread_id, user_id=user_id)

    async def append_messages(self, thread_id: str, messages: Sequence[Message]) -> None:
        """Append messages to a thread in one call, preserving their order."""
        self._require_non_empty(thread_id, "thread_id")
        if not messages:
            raise ValueError("messages must contain at least one message")
        await self.arequest(
            "POST",
            f"/threads/{thread_id}/messages",
            json={"messages": [message.to_payload() for message in messages]},
        )

    async def delete_thread(self, thread_id: str) -> None:
        """Delete a thread and its messages."""
        self._require_non_empty(thread_id, "thread_id")
        await self.arequest("DELETE", f"/threads/{thread_id}")

    @staticmethod
    def _require_non_empty(value: str, param_name: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{param_name} is required and must be a non-empty string")

    @staticmethod
    def _to_exception(response: httpx.Response) -> ZepError:
        status_code = response.status_code
        raw_message = response.reason_phrase or ""
        code: str | None = None

        try:
            payload = response.json()
            if isinstance(payload, dict):
                error = payload.get("error")
                if isinstance(error, dict):
                    raw_message = str(error.get("message", raw_message))
                    code = error.get("code") if isinstance(error.get("code"), str) else None
                elif isinstance(payload.get("message"), str):
                    raw_message = payload["message"]
        except ValueError:
            if response.text:
                raw_message = response.text

        exc_type = exception_for_status(status_code)
        message = f"{exc_type.summary} Zep API responded with status {status_code}"
        if raw_message:
            message = f"{message}: {raw_message}"
        return exc_type(
            message,
            status_code=status_code,
            code=code,
            details={"original_message": raw_message},
        )
