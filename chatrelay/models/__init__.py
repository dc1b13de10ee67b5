"""Pydantic models for relay requests, upstream frames and decoded events.

Provides type safety and validation at both ends of the stream.

Models:
    - ChatMessage: Individual message in conversation
    - ChatCompletionRequest: Body accepted by POST /chat
    - ErrorResponse: JSON error body returned instead of a stream
    - DeltaFrame: Upstream incremental completion frame
    - StreamChunk: Decoded event handed to the transcript
"""

from chatrelay.models.schemas import (
    ChatCompletionRequest,
    ChatMessage,
    DeltaFrame,
    ErrorResponse,
    Role,
    StreamChunk,
)

__all__ = [
    "ChatCompletionRequest",
    "ChatMessage",
    "DeltaFrame",
    "ErrorResponse",
    "Role",
    "StreamChunk",
]
