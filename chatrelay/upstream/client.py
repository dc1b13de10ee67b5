"""Streaming client for the upstream completion API.

Opens one token-streaming request per call and hands the unread response
back to the caller. Two failure paths are kept apart:

1. **Rejection** - upstream answers with a non-success status, or the
   connection cannot be established. Nothing has been streamed yet, so the
   caller still gets a status code and error text (``UpstreamRejection``).

2. **Mid-stream failure** - the response started and the connection drops
   later. This surfaces as ``httpx.HTTPError`` while iterating
   ``UpstreamStream.aiter_bytes()``.

No retries: a failure is reported to the caller immediately.
"""

import logging
from collections.abc import AsyncIterator, Sequence

import httpx

from chatrelay.models.schemas import ChatMessage
from chatrelay.upstream.config import UpstreamConfig, get_upstream_config

logger = logging.getLogger(__name__)


class UpstreamRejection(Exception):
    """Raised when upstream refuses the request before streaming starts."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Upstream rejected request with HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class UpstreamStream:
    """An accepted upstream response whose body has not been read yet."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks in the order upstream sends them."""
        async for chunk in self._response.aiter_bytes():
            if chunk:
                yield chunk

    async def aclose(self) -> None:
        await self._response.aclose()


class UpstreamClient:
    """Issues streaming completion requests over a pooled HTTP client.

    Args:
        config: Upstream settings. Loads from environment if not provided.
        transport: Optional httpx transport, used by tests to fake upstream.
    """

    def __init__(
        self,
        config: UpstreamConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or get_upstream_config()
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(
                self._config.timeout, connect=self._config.connect_timeout
            ),
            transport=transport,
        )

    @property
    def config(self) -> UpstreamConfig:
        return self._config

    async def open_stream(
        self,
        model: str,
        messages: Sequence[ChatMessage],
    ) -> UpstreamStream:
        """Start a streaming completion.

        Args:
            model: Upstream model identifier.
            messages: Ordered conversation to complete.

        Returns:
            UpstreamStream positioned before the first body byte.

        Raises:
            UpstreamRejection: Upstream returned an error status or could
                not be reached.
        """
        request = self._http.build_request(
            "POST",
            self._config.completions_url,
            json={
                "model": model,
                "messages": [m.model_dump() for m in messages],
                "stream": True,
            },
            headers={
                "Authorization": f"Bearer {self._config.api_key}",
                "Accept": "text/event-stream",
            },
        )

        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning(f"Upstream connection failed: {e!r}")
            raise UpstreamRejection(502, f"Upstream connection failed: {e}") from e

        if response.is_success:
            logger.debug(f"Upstream stream opened for model {model}")
            return UpstreamStream(response)

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        finally:
            await response.aclose()
        raise UpstreamRejection(response.status_code, body)

    async def aclose(self) -> None:
        await self._http.aclose()


# Module-level singleton instance
_upstream_client: UpstreamClient | None = None


def get_upstream_client() -> UpstreamClient:
    """Get or create the global upstream client.

    Returns:
        The UpstreamClient instance.

    Raises:
        ValidationError: If the upstream configuration is incomplete.
    """
    global _upstream_client
    if _upstream_client is None:
        _upstream_client = UpstreamClient()
    return _upstream_client


async def close_upstream_client() -> None:
    """Close the pooled connection of the global client, if one was created."""
    global _upstream_client
    if _upstream_client is not None:
        await _upstream_client.aclose()
        _upstream_client = None
