"""Client side of the relay: POST /chat and decode the event stream."""

import logging
import os
from collections.abc import AsyncIterator

import httpx

from chatrelay.models.schemas import ChatCompletionRequest, StreamChunk
from chatrelay.streaming.decoder import SSEDecoder

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")


class RelayRequestError(Exception):
    """Raised when the relay answers with an error instead of a stream."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return response.text


class RelayClient:
    """Streams decoded chunks for one chat request at a time.

    Args:
        base_url: Where the relay API is served.
        transport: Optional httpx transport (tests route this to the ASGI app).
        timeout: Seconds to wait for each read.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout

    async def stream(self, request: ChatCompletionRequest) -> AsyncIterator[StreamChunk]:
        """Send ``request`` to the relay and yield events as they decode.

        Iteration ends after the ``[DONE]`` sentinel, or when the transport
        closes. Callers tell the two apart by whether a chunk with
        ``done=True`` was seen.

        Raises:
            RelayRequestError: The relay returned a non-200 status.
            httpx.HTTPError: The connection failed or dropped.
        """
        decoder = SSEDecoder()
        async with (
            httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client,
            client.stream(
                "POST",
                f"{self._base_url}/chat",
                json=request.model_dump(exclude_none=True),
                headers={"Accept": "text/event-stream"},
            ) as response,
        ):
            if response.status_code != 200:
                await response.aread()
                raise RelayRequestError(response.status_code, _error_message(response))

            async for raw in response.aiter_bytes():
                for chunk in decoder.feed(raw):
                    yield chunk
                    if chunk.done:
                        return

            for chunk in decoder.flush():
                yield chunk
                if chunk.done:
                    return

        logger.debug("Relay stream closed without completion sentinel")
