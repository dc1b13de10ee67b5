"""Integration tests for components working together as a system.

Coverage:
    - POST /chat with real HTTP requests through ASGITransport
    - Relay client decoding the relay's own stream
    - Full session flow from request to transcript entry

Only the upstream completion API is replaced, by FakeUpstream.
"""
