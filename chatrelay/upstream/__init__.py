"""Upstream completion API access.

Responsibilities:
    - Configuration of the upstream endpoint and credential
    - Opening one streaming completion request per relay call
    - Separating synchronous rejection from mid-stream failure

Knows nothing about SSE framing; bytes are handed over untouched.
"""

from chatrelay.upstream.client import (
    UpstreamClient,
    UpstreamRejection,
    UpstreamStream,
    close_upstream_client,
    get_upstream_client,
)
from chatrelay.upstream.config import UpstreamConfig, get_upstream_config

__all__ = [
    "UpstreamClient",
    "UpstreamConfig",
    "UpstreamRejection",
    "UpstreamStream",
    "close_upstream_client",
    "get_upstream_client",
    "get_upstream_config",
]
