"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat message display, updated in place while a reply streams
    - Document upload (drag and drop) for summaries
    - Loading indicator and stop control for the streaming session

Conversation state lives in chatrelay.conversation; this package only
renders it and forwards user actions.
"""
