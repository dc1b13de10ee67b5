"""Conversation state on the client side of the relay.

Responsibilities:
    - Ordered transcript with id-addressed, copy-on-write appends
    - Single-flight sessions: a new generation cancels the previous one
    - Mapping stream outcomes to completed, cancelled, or failed
"""

from chatrelay.conversation.session import (
    DEFAULT_ERROR_MESSAGE,
    Session,
    SessionController,
    SessionState,
)
from chatrelay.conversation.transcript import Transcript, TranscriptEntry

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "Session",
    "SessionController",
    "SessionState",
    "Transcript",
    "TranscriptEntry",
]
