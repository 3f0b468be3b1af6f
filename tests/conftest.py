from __future__ import annotations

from typing import Any

import httpx
import pytest

from zepthread import ZepClient


class MockAPI:
    def __init__(self) -> None:
        self.responses: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def enqueue(self, response: httpx.Response | Exception) -> None:
        self.responses.append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(
                500,
                request=request,
                json={"message": "No mocked response queued"},
            )

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.request = request
        return response


@pytest.fixture
def mock_api() -> MockAPI:
    return MockAPI()


@pytest.fixture
def mock_client() -> tuple[ZepClient, MockAPI]:
    api = MockAPI()
    transport = httpx.MockTransport(api.handler)

    client = ZepClient(api_key="test-key", base_url="https://example.test", max_retries=3)
    client._client = httpx.AsyncClient(
        base_url=client.base_url,
        headers=client.headers,
        transport=transport,
        timeout=httpx.Timeout(client.timeout),
    )

    return client, api


@pytest.fixture
def sample_messages() -> list[dict[str, Any]]:
    return [
        {
            "uuid": "m-1",
            "role": "user",
            "content": "My favorite language is Python",
            "name": "Ada",
            "created_at": "2026-01-01T00:00:00Z",
        },
        {
            "uuid": "m-2",
            "role": "assistant",
            "content": "Noted",
            "metadata": {"source": "unit-test"},
            "created_at": "2026-01-01T00:00:01Z",
        },
    ]
