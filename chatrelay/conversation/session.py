"""Single-flight controller for streamed generations.

One chat page owns one controller. Each generation runs as a ``Session``:
an asyncio task writing decoded fragments into one transcript entry.

State machine::

    Idle -> Streaming -> {Completed | Cancelled | Failed} -> Idle

Starting a generation while another is streaming cancels the old session
first. The old session is marked cancelled synchronously, before the new one
is installed, so at no instant are two sessions streaming. Fragments from a
session that is no longer current are dropped.

A completed session marks its entry complete. Cancellation is not a
failure: a cancelled session leaves its transcript entry as it was. A
failed session (error response, dropped connection, or a stream that ends
without the completion sentinel) has its entry replaced by the session's
error message.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, Coroutine
from contextlib import aclosing
from enum import Enum
from typing import Any

import httpx

from chatrelay.conversation.transcript import Transcript
from chatrelay.models.schemas import ChatCompletionRequest
from chatrelay.streaming.client import RelayClient, RelayRequestError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred while generating the response."


class SessionState(str, Enum):
    """Lifecycle states of a generation."""

    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Session:
    """One in-flight generation.

    Attributes:
        id: Identifier used in logs.
        target_id: Transcript entry this session writes into.
        error_message: Text written into the target if the session fails.
        state: Streaming until one terminal state is reached.
    """

    def __init__(self, target_id: str, error_message: str) -> None:
        self.id = uuid.uuid4().hex[:8]
        self.target_id = target_id
        self.error_message = error_message
        self.state = SessionState.STREAMING
        self._task: asyncio.Task[None] | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state is not SessionState.STREAMING

    def launch(self, work: Coroutine[Any, Any, None]) -> None:
        """Run `work` as this session's task on the running loop."""
        self._task = asyncio.get_running_loop().create_task(work)

    def cancel(self) -> bool:
        """Mark the session cancelled and abort its network read.

        Returns:
            False if the session had already finished.
        """
        if self.is_terminal:
            return False
        self.state = SessionState.CANCELLED
        if self._task is not None:
            self._task.cancel()
        return True

    async def wait(self) -> None:
        """Wait until the session's task has finished, however it ended."""
        if self._task is not None:
            await asyncio.wait({self._task})


class SessionController:
    """Runs at most one streaming session against a transcript.

    Args:
        transcript: The transcript sessions write into.
        client: Source of decoded stream chunks for a request.
        on_update: Called with the affected session after every fragment
            and every state change.
    """

    def __init__(
        self,
        transcript: Transcript,
        client: RelayClient,
        on_update: Callable[[Session], None] | None = None,
    ) -> None:
        self._transcript = transcript
        self._client = client
        self._on_update = on_update
        self._current: Session | None = None

    @property
    def current(self) -> Session | None:
        return self._current

    @property
    def state(self) -> SessionState:
        if self._current is not None and not self._current.is_terminal:
            return SessionState.STREAMING
        return SessionState.IDLE

    @property
    def is_streaming(self) -> bool:
        return self.state is SessionState.STREAMING

    def start(
        self,
        request: ChatCompletionRequest,
        target_id: str,
        error_message: str = DEFAULT_ERROR_MESSAGE,
    ) -> Session:
        """Cancel any streaming session, then start a new one.

        Must be called from within the running event loop.

        Args:
            request: Chat request to relay.
            target_id: Assistant placeholder the new session writes into.
            error_message: Text written into the target on failure.

        Returns:
            The new session, already streaming.
        """
        previous = self._current
        if previous is not None and previous.cancel():
            logger.info(f"Session {previous.id} superseded")
            self._notify(previous)

        session = Session(target_id, error_message)
        self._current = session
        session.launch(self._run(session, request))
        logger.info(f"Session {session.id} started for entry {target_id}")
        self._notify(session)
        return session

    def cancel(self) -> bool:
        """Stop the streaming session, if any. Returns True if one was stopped."""
        session = self._current
        if session is None or not session.cancel():
            return False
        logger.info(f"Session {session.id} cancelled")
        self._notify(session)
        return True

    async def _run(self, session: Session, request: ChatCompletionRequest) -> None:
        try:
            async with aclosing(self._client.stream(request)) as chunks:
                async for chunk in chunks:
                    if chunk.done:
                        self._finish(session, SessionState.COMPLETED)
                        return
                    self._append(session, chunk.content)
            logger.warning(f"Session {session.id}: stream ended without completion sentinel")
            self._fail(session)
        except asyncio.CancelledError:
            self._finish(session, SessionState.CANCELLED)
            raise
        except RelayRequestError as e:
            logger.warning(f"Session {session.id}: relay refused request ({e})")
            self._fail(session)
        except httpx.HTTPError as e:
            logger.warning(f"Session {session.id}: transport error {e!r}")
            self._fail(session)
        except Exception:
            logger.exception(f"Session {session.id}: unexpected error while streaming")
            self._fail(session)

    def _append(self, session: Session, fragment: str) -> None:
        if session.is_terminal or session is not self._current:
            logger.debug(f"Session {session.id}: dropping stale fragment")
            return
        if self._transcript.append(session.target_id, fragment):
            self._notify(session)

    def _fail(self, session: Session) -> None:
        if self._transition(session, SessionState.FAILED):
            self._transcript.fail(session.target_id, session.error_message)
            self._notify(session)

    def _finish(self, session: Session, state: SessionState) -> None:
        if self._transition(session, state):
            if state is SessionState.COMPLETED:
                self._transcript.complete(session.target_id)
            self._notify(session)

    def _transition(self, session: Session, state: SessionState) -> bool:
        if session.is_terminal:
            return False
        session.state = state
        logger.info(f"Session {session.id} {state.value}")
        return True

    def _notify(self, session: Session) -> None:
        if self._on_update is not None:
            self._on_update(session)
