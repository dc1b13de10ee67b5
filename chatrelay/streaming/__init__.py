"""Client-side stream handling.

Responsibilities:
    - Decoding chunked server-sent events into text fragments
    - Buffering events split across network reads
    - Calling the relay endpoint and surfacing its error responses
"""

from chatrelay.streaming.client import RelayClient, RelayRequestError
from chatrelay.streaming.decoder import DONE_SENTINEL, SSEDecoder

__all__ = ["DONE_SENTINEL", "RelayClient", "RelayRequestError", "SSEDecoder"]
