"""Test doubles for the upstream API and the relay stream."""

import asyncio
import json
from collections.abc import AsyncIterator

import httpx

from chatrelay.models.schemas import ChatCompletionRequest, StreamChunk

DONE_FRAME = b"data: [DONE]\n\n"


def delta_frame(text: str) -> bytes:
    """One upstream SSE frame carrying ``text`` as its delta."""
    payload = {"id": "chatcmpl-1", "choices": [{"index": 0, "delta": {"content": text}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


class FakeUpstream:
    """Scriptable completion API served through httpx.MockTransport.

    Configure the attributes before the request is made; every request the
    relay sends is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.error_body = b""
        self.chunks: list[bytes] = []
        self.fail_mid_stream = False
        self.refuse_connection = False
        self.requests: list[httpx.Request] = []

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    async def _body(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        if self.fail_mid_stream:
            raise httpx.ReadError("upstream connection reset")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.refuse_connection:
            raise httpx.ConnectError("connection refused", request=request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, content=self.error_body)
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            content=self._body(),
        )


class ScriptedRelay:
    """Relay client whose streams are fed by the test, one queue per call.

    Put StreamChunk values on a feed to emit them, an exception to raise it
    from the stream, or None to end the stream without a sentinel.
    """

    def __init__(self) -> None:
        self.requests: list[ChatCompletionRequest] = []
        self.feeds: list[asyncio.Queue] = []

    async def stream(self, request: ChatCompletionRequest) -> AsyncIterator[StreamChunk]:
        feed: asyncio.Queue = asyncio.Queue()
        self.requests.append(request)
        self.feeds.append(feed)
        while True:
            item = await feed.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


async def settle() -> None:
    """Let pending tasks run until they block again."""
    for _ in range(10):
        await asyncio.sleep(0)
