"""Relay endpoint that streams upstream completions to the browser.

The request is validated in full before anything is sent upstream. Once the
upstream accepts, the response switches to event-stream framing and upstream
bytes are copied through unchanged. From that point on the status code is
committed: an upstream failure can only end the stream, never become a JSON
error.
"""

import json
import logging
from collections.abc import AsyncIterator

import httpx
from fastapi import APIRouter, Request, Response, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatrelay.models.schemas import ChatCompletionRequest, ErrorResponse
from chatrelay.upstream.client import UpstreamRejection, UpstreamStream, get_upstream_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}

async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Answer 405 with an empty body, keeping the Allow header routing computed.

    Any method other than POST on /chat ends up here with ``Allow: POST``.
    Other HTTP errors keep FastAPI's JSON rendering.
    """
    if exc.status_code != status.HTTP_405_METHOD_NOT_ALLOWED:
        return await http_exception_handler(request, exc)
    logger.debug(f"{request.method} {request.url.path} rejected")
    return Response(status_code=exc.status_code, headers=exc.headers)


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    body = ErrorResponse(error=message).model_dump()
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


async def _relay_stream(stream: UpstreamStream) -> AsyncIterator[bytes]:
    """Forward upstream chunks verbatim until upstream ends or fails."""
    forwarded = 0
    try:
        async for chunk in stream.aiter_bytes():
            forwarded += len(chunk)
            yield chunk
    except httpx.HTTPError as e:
        # Headers are already sent; closing the stream is the only signal left.
        logger.warning(f"Upstream stream failed after {forwarded} bytes: {e!r}")
    finally:
        await stream.aclose()
    logger.debug(f"Relay stream finished ({forwarded} bytes)")


@router.post(
    "/chat",
    response_model=None,
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse},
        405: {"description": "Method not allowed"},
    },
)
async def relay_chat(request: Request) -> Response:
    """Relay a chat completion request and stream the upstream reply.

    Returns:
        An event stream carrying upstream frames verbatim, or a JSON error.

    Raises:
        400: Body is not JSON or does not describe a chat request.
        500: Upstream credential is not configured.
        4xx/5xx: Upstream rejected the request (status passed through).
    """
    raw = await request.body()

    try:
        payload = json.loads(raw)
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON")

    try:
        chat_request = ChatCompletionRequest.model_validate(payload)
    except ValidationError as e:
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )

    try:
        upstream = get_upstream_client()
    except ValidationError as e:
        logger.error(f"Upstream client is not configured: {e}")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Upstream API key is not configured",
        )

    try:
        stream = await upstream.open_stream(chat_request.model, chat_request.messages)
    except UpstreamRejection as e:
        logger.warning(f"Upstream rejected request for {chat_request.model}: HTTP {e.status_code}")
        return _error(e.status_code, e.body)

    logger.info(
        f"Relaying stream for {chat_request.model} ({len(chat_request.messages)} messages)"
    )
    return StreamingResponse(
        _relay_stream(stream),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(stream.aclose),
    )
