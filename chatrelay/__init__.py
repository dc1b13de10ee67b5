"""Chat Relay - streaming LLM chat and document summaries in the browser.

Combines FastAPI for the streaming relay, httpx for upstream and relay
clients, NiceGUI for the chat page, and Pydantic for data validation.

Components:
    - api: Relay endpoint forwarding upstream server-sent events
    - upstream: Streaming client for the completion API
    - streaming: Event stream decoder and relay stream client
    - conversation: Transcript reducer and single-flight session controller
    - parsing: Document text extraction for summaries
    - ui: Web interface for chat interactions
    - models: Request, frame and event schemas
"""

__version__ = "0.1.0"
