"""Test package for the chat relay.

Structure:
    - unit/: Decoder, transcript, session, config and client tests
    - integration/: Relay endpoint and end-to-end session tests
    - fakes.py: Scriptable upstream API and relay stream doubles

The upstream completion API is always faked; no test needs network access
or an API key. Leverages pytest with pytest-check for soft assertions.
"""
