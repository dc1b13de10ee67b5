"""Pytest fixtures and shared test configuration.

Fixtures:
    - upstream: Fake completion API wired into the relay endpoint
    - async_client: HTTPX client for API testing
    - relay_client: RelayClient talking to the app in-process
    - chat_request: A minimal valid relay request

No fixture touches the network; upstream is always faked.
"""

from collections.abc import AsyncGenerator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from chatrelay.api import app
from chatrelay.models.schemas import ChatCompletionRequest, ChatMessage
from chatrelay.streaming.client import RelayClient
from chatrelay.upstream.client import UpstreamClient
from chatrelay.upstream.config import UpstreamConfig
from tests.fakes import FakeUpstream


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(api_key="sk-test-key", base_url="https://upstream.test/v1")


@pytest.fixture
async def upstream(
    monkeypatch: pytest.MonkeyPatch, upstream_config: UpstreamConfig
) -> AsyncGenerator[FakeUpstream]:
    """Replace the relay's upstream client with one backed by FakeUpstream.

    Yields:
        The fake, for scripting responses and inspecting requests.
    """
    fake = FakeUpstream()
    client = UpstreamClient(config=upstream_config, transport=httpx.MockTransport(fake.handler))
    monkeypatch.setattr("chatrelay.api.chat.get_upstream_client", lambda: client)
    yield fake
    await client.aclose()


@pytest.fixture
async def async_client(upstream: FakeUpstream) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def relay_client(upstream: FakeUpstream) -> RelayClient:
    return RelayClient(base_url="http://test", transport=ASGITransport(app=app))


@pytest.fixture
def chat_request() -> ChatCompletionRequest:
    return ChatCompletionRequest(
        model="gpt-4o-mini",
        stream=True,
        messages=[ChatMessage(role="user", content="Hello")],
    )
