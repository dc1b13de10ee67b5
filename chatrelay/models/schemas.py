from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """A single chat message in the conversation.

    Attributes:
        role: The speaker identifier (system, user, or assistant).
        content: The message text.
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class ChatCompletionRequest(BaseModel):
    """Request payload accepted by the relay and forwarded upstream.

    Attributes:
        model: Upstream model identifier.
        stream: Accepted for compatibility; the relay always streams.
        messages: Ordered conversation sent to the model.
    """

    model: str = Field(..., min_length=1)
    stream: bool | None = None
    messages: list[ChatMessage] = Field(..., min_length=1)


class ErrorResponse(BaseModel):
    """JSON error body returned instead of a stream."""

    error: str


class Delta(BaseModel):
    content: str | None = None


class DeltaChoice(BaseModel):
    delta: Delta


class DeltaFrame(BaseModel):
    """One upstream completion frame carrying incremental text.

    Only the fields the client reads are declared; everything else the
    upstream sends is ignored.
    """

    choices: list[DeltaChoice]

    def fragment(self) -> str:
        """Return the text added by this frame, or an empty string."""
        if not self.choices:
            return ""
        return self.choices[0].delta.content or ""


class StreamChunk(BaseModel):
    """A decoded event from the relay stream.

    Attributes:
        content: Text fragment carried by this event.
        done: True only for the end-of-stream sentinel.
    """

    content: str = ""
    done: bool = False
