"""Unit tests for the transcript reducer."""

import pytest
from pydantic import ValidationError

from chatrelay.conversation.transcript import Transcript


@pytest.fixture
def transcript() -> Transcript:
    transcript = Transcript()
    transcript.add("system", "Be brief.")
    return transcript


class TestBeginExchange:
    def test_adds_user_message_then_empty_placeholder(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("Hi there")

        roles = [(e.role, e.content) for e in transcript.entries]
        assert roles == [("system", "Be brief."), ("user", "Hi there"), ("assistant", "")]
        assert transcript.entries[-1].id == target

    def test_each_exchange_gets_a_distinct_target(self, transcript: Transcript) -> None:
        first = transcript.begin_exchange("one")
        second = transcript.begin_exchange("two")

        assert first != second
        assert len(transcript) == 5


class TestAppend:
    def test_fragments_accumulate_in_order(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("question")

        for fragment in ["The ", "answer ", "is 42."]:
            assert transcript.append(target, fragment) is True

        assert transcript.get(target).content == "The answer is 42."

    def test_other_entries_are_untouched(self, transcript: Transcript) -> None:
        earlier = transcript.begin_exchange("first")
        transcript.append(earlier, "done")
        before = [e.model_dump() for e in transcript.entries]

        target = transcript.begin_exchange("second")
        transcript.append(target, "streaming")

        assert [e.model_dump() for e in transcript.entries[: len(before)]] == before

    def test_snapshots_are_not_aliased(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")
        snapshot = transcript.entries

        transcript.append(target, "new text")

        assert snapshot[-1].content == ""
        assert transcript.entries[-1].content == "new text"

    def test_target_keeps_its_id(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")
        transcript.append(target, "x")

        assert transcript.entries[-1].id == target

    def test_unknown_target_is_a_no_op(self, transcript: Transcript) -> None:
        transcript.begin_exchange("q")
        before = transcript.entries

        assert transcript.append("missing", "text") is False
        assert transcript.entries == before

    def test_write_after_clear_is_dropped(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")
        transcript.clear()

        assert transcript.append(target, "late") is False
        assert len(transcript) == 0

    def test_entries_are_frozen(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")

        with pytest.raises(ValidationError):
            transcript.get(target).content = "mutated"


class TestFail:
    def test_replaces_partial_content(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")
        transcript.append(target, "half an ans")

        assert transcript.fail(target, "Something went wrong.") is True
        assert transcript.get(target).content == "Something went wrong."

    def test_unknown_target_is_a_no_op(self, transcript: Transcript) -> None:
        assert transcript.fail("missing", "error") is False


class TestContext:
    def test_returns_messages_before_target(self, transcript: Transcript) -> None:
        first = transcript.begin_exchange("first")
        transcript.append(first, "reply")
        target = transcript.begin_exchange("second")

        context = transcript.context(before=target)

        assert [(m.role, m.content) for m in context] == [
            ("system", "Be brief."),
            ("user", "first"),
            ("assistant", "reply"),
            ("user", "second"),
        ]

    def test_without_target_returns_everything(self, transcript: Transcript) -> None:
        transcript.begin_exchange("q")

        assert len(transcript.context()) == 3

    def test_context_drops_entry_ids(self, transcript: Transcript) -> None:
        assert set(transcript.context()[0].model_dump()) == {"role", "content"}


class TestCompletion:
    def test_placeholder_starts_incomplete(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")

        assert transcript.get(target).complete is False
        assert all(e.complete for e in transcript.entries[:-1])

    def test_complete_keeps_content(self, transcript: Transcript) -> None:
        target = transcript.begin_exchange("q")
        transcript.append(target, "answer")

        assert transcript.complete(target) is True
        assert transcript.get(target).complete is True
        assert transcript.get(target).content == "answer"

    def test_context_can_skip_unfinished_replies(self, transcript: Transcript) -> None:
        finished = transcript.begin_exchange("first")
        transcript.append(finished, "full reply")
        transcript.complete(finished)
        interrupted = transcript.begin_exchange("second")
        transcript.append(interrupted, "half a rep")

        context = transcript.context(complete_only=True)

        assert [(m.role, m.content) for m in context] == [
            ("system", "Be brief."),
            ("user", "first"),
            ("assistant", "full reply"),
            ("user", "second"),
        ]
