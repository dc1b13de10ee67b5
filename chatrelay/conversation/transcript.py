"""Ordered chat transcript with append-only streaming writes.

Entries are frozen models. Every write builds a new list from a copy of the
current one, so a snapshot handed to a renderer never changes underneath it.
Writes address entries by their generated id rather than by position.
"""

import logging
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import Field

from chatrelay.models.schemas import ChatMessage, Role

logger = logging.getLogger(__name__)


class TranscriptEntry(ChatMessage):
    """A transcript message with a stable handle.

    Attributes:
        id: Opaque identifier used as a session's write target.
        complete: False while a reply is unfinished; stays False if the
            reply was cancelled or failed.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    complete: bool = True

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class Transcript:
    """The conversation shown in the UI, in rendering order."""

    def __init__(self) -> None:
        self._entries: list[TranscriptEntry] = []

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> TranscriptEntry | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def add(self, role: Role, content: str, complete: bool = True) -> str:
        """Append a message and return its id."""
        entry = TranscriptEntry(role=role, content=content, complete=complete)
        self._entries = [*self._entries, entry]
        return entry.id

    def begin_exchange(self, user_content: str) -> str:
        """Append a user message followed by an empty assistant placeholder.

        Returns:
            Id of the placeholder, the write target for the generation.
        """
        self.add("user", user_content)
        return self.add("assistant", "", complete=False)

    def append(self, target_id: str, fragment: str) -> bool:
        """Append ``fragment`` to the target entry's content.

        Returns:
            False if the target no longer exists; the transcript is unchanged.
        """
        return self._replace(target_id, lambda e: {"content": e.content + fragment})

    def fail(self, target_id: str, message: str) -> bool:
        """Replace the target entry's content with an error message."""
        return self._replace(target_id, lambda e: {"content": message})

    def complete(self, target_id: str) -> bool:
        """Mark the target entry as a finished reply."""
        return self._replace(target_id, lambda e: {"complete": True})

    def context(
        self, before: str | None = None, complete_only: bool = False
    ) -> list[ChatMessage]:
        """Messages preceding ``before`` (or all of them), as sent upstream.

        With ``complete_only``, unfinished, cancelled and failed replies are
        left out.
        """
        messages: list[ChatMessage] = []
        for entry in self._entries:
            if entry.id == before:
                break
            if complete_only and not entry.complete:
                continue
            messages.append(entry.to_message())
        return messages

    def clear(self) -> None:
        self._entries = []

    def _replace(
        self, target_id: str, changes: Callable[[TranscriptEntry], dict[str, Any]]
    ) -> bool:
        for index, entry in enumerate(self._entries):
            if entry.id == target_id:
                updated = entry.model_copy(update=changes(entry))
                entries = list(self._entries)
                entries[index] = updated
                self._entries = entries
                return True
        logger.debug(f"Transcript entry {target_id} is gone; write dropped")
        return False
