"""FastAPI endpoints for the chat relay.

Endpoints:
    - GET /health: Service health status
    - POST /chat: Streaming chat completion relay (Server-Sent Events)
"""

from chatrelay.api.app import app, create_app

__all__ = ["app", "create_app"]
