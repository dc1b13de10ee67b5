"""Unit tests for individual components in isolation.

Coverage:
    - streaming/: Incremental SSE decoding
    - conversation/: Transcript updates and single-flight sessions
    - upstream/: Configuration and the streaming upstream client
    - parsing/: Document text extraction

Sessions are driven by a scripted relay; the upstream client talks to
httpx.MockTransport.
"""
