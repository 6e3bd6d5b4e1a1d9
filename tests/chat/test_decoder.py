"""Tests for the stage decoder."""

import json
from typing import Any

import pytest

from reasonrelay.chat.decoder import (
    RequestSession,
    StageDecoder,
    format_tool_call,
    format_usage,
    parse_chunk,
)
from reasonrelay.chat.errors import MalformedChunkError, SessionFinishedError
from reasonrelay.chat.models import Stage, StageEvent


def decode_all(decoder: StageDecoder, raw_chunks: list[Any]) -> list[StageEvent]:
    events: list[StageEvent] = []
    for raw in raw_chunks:
        events.extend(decoder.decode(raw))
    events.append(decoder.complete())
    return events


def summary(events: list[StageEvent]) -> list[tuple[str, str]]:
    return [(event.stage.value, event.text) for event in events]


class TestParseChunk:
    """Tests for parse_chunk function."""

    def test_parse_mapping(self) -> None:
        chunk = parse_chunk({"choices": [{"delta": {"content": "hi"}}]})
        assert chunk is not None
        assert chunk.choices[0].delta.content == "hi"

    def test_parse_sse_line(self) -> None:
        """Raw provider lines with a data: prefix should be accepted."""
        line = "data: " + json.dumps({"choices": [{"delta": {"reasoning_content": "x"}}]})
        chunk = parse_chunk(line)
        assert chunk is not None
        assert chunk.choices[0].delta.reasoning_content == "x"

    def test_parse_bytes(self) -> None:
        chunk = parse_chunk(b'{"choices": [{"delta": {"content": "b"}}]}')
        assert chunk is not None
        assert chunk.choices[0].delta.content == "b"

    @pytest.mark.parametrize("raw", ["data: [DONE]", "[DONE]", "", "   ", "data:"])
    def test_end_marker_and_blank_lines_give_none(self, raw: str) -> None:
        assert parse_chunk(raw) is None

    def test_parse_object_with_model_dump(self) -> None:
        """litellm streaming objects expose model_dump()."""

        class _Streamed:
            def model_dump(self) -> dict[str, Any]:
                return {"choices": [{"delta": {"content": "obj"}}]}

        chunk = parse_chunk(_Streamed())
        assert chunk is not None
        assert chunk.choices[0].delta.content == "obj"

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(MalformedChunkError) as exc_info:
            parse_chunk("data: {not json")
        assert exc_info.value.code == "malformed_chunk"

    def test_unexpected_type_raises(self) -> None:
        with pytest.raises(MalformedChunkError):
            parse_chunk(42)

    def test_schema_mismatch_raises(self) -> None:
        with pytest.raises(MalformedChunkError):
            parse_chunk({"choices": "nope"})


class TestFormatting:
    def test_format_tool_call_with_arguments(self) -> None:
        assert (
            format_tool_call("get_weather", '{"city": "Paris"}')
            == 'Tool: get_weather - Args: {"city": "Paris"}'
        )

    def test_format_tool_call_without_arguments(self) -> None:
        assert format_tool_call("ping", "") == "Tool: ping"
        assert format_tool_call("ping", None) == "Tool: ping"

    def test_format_usage(self) -> None:
        assert format_usage(10, 5, 15) == "Tokens: 10 prompt, 5 completion, 15 total"


class TestStageDecoder:
    """Tests for StageDecoder transitions."""

    def test_reasoning_then_answer(self, thinking_chunks: list[dict[str, Any]]) -> None:
        """Reasoning deltas precede one reasoning_complete, then answers and complete."""
        decoder = StageDecoder(RequestSession(session_id="s1"))

        events = decode_all(decoder, thinking_chunks)

        assert summary(events) == [
            ("reasoning", "step1"),
            ("reasoning", "step2"),
            ("reasoning_complete", ""),
            ("answer", "ans1"),
            ("answer", "ans2"),
            ("complete", "ans1ans2"),
        ]
        assert all(event.session_id == "s1" for event in events)
        assert [event.terminal for event in events] == [False] * 5 + [True]

    def test_answer_only_session_still_emits_reasoning_complete(self, chunks: Any) -> None:
        decoder = StageDecoder()

        events = decode_all(decoder, [chunks.answer("hi")])

        assert summary(events) == [
            ("reasoning_complete", ""),
            ("answer", "hi"),
            ("complete", "hi"),
        ]

    def test_empty_stream_completes_with_empty_answer(self) -> None:
        decoder = StageDecoder()
        assert summary(decode_all(decoder, [])) == [("complete", "")]

    def test_session_accumulates_text(self, thinking_chunks: list[dict[str, Any]]) -> None:
        session = RequestSession()
        decoder = StageDecoder(session)

        decode_all(decoder, thinking_chunks)

        assert session.reasoning_text == "step1step2"
        assert session.answer_text == "ans1ans2"
        assert session.answering is True
        assert session.finished is True

    def test_reasoning_field_alias(self) -> None:
        """delta.reasoning is accepted when reasoning_content is absent."""
        decoder = StageDecoder()
        events = decoder.decode({"choices": [{"delta": {"reasoning": "hmm"}}]})
        assert summary(events) == [("reasoning", "hmm")]

    def test_late_reasoning_is_dropped(self, chunks: Any) -> None:
        """Reasoning after answering began must not break the ordering."""
        decoder = StageDecoder()

        events = decode_all(
            decoder, [chunks.answer("a"), chunks.reasoning("late"), chunks.answer("b")]
        )

        assert summary(events) == [
            ("reasoning_complete", ""),
            ("answer", "a"),
            ("answer", "b"),
            ("complete", "ab"),
        ]

    def test_single_chunk_with_reasoning_and_answer(self) -> None:
        decoder = StageDecoder()
        events = decoder.decode(
            {"choices": [{"delta": {"reasoning_content": "r", "content": "a"}}]}
        )
        assert summary(events) == [
            ("reasoning", "r"),
            ("reasoning_complete", ""),
            ("answer", "a"),
        ]

    def test_empty_deltas_emit_nothing(self) -> None:
        decoder = StageDecoder()
        assert decoder.decode({"choices": [{"delta": {"content": "", "reasoning_content": ""}}]}) == []
        assert decoder.decode({"choices": [{"delta": {}}]}) == []
        assert decoder.session.answering is False

    def test_tool_calls(self) -> None:
        decoder = StageDecoder()
        events = decoder.decode(
            {
                "choices": [
                    {
                        "delta": {
                            "tool_calls": [
                                {"index": 0, "function": {"name": "search", "arguments": '{"q": "x"}'}},
                                {"index": 1, "function": {"name": "clock", "arguments": ""}},
                            ]
                        }
                    }
                ]
            }
        )
        assert summary(events) == [
            ("tool_call", 'Tool: search - Args: {"q": "x"}'),
            ("tool_call", "Tool: clock"),
        ]

    def test_tool_call_without_function(self) -> None:
        decoder = StageDecoder()
        events = decoder.decode({"choices": [{"delta": {"tool_calls": [{"index": 0}]}}]})
        assert summary(events) == [("tool_call", "Tool: ")]

    def test_usage(self, chunks: Any) -> None:
        decoder = StageDecoder()
        events = decoder.decode(chunks.usage(12, 30))
        assert summary(events) == [("usage", "Tokens: 12 prompt, 30 completion, 42 total")]

    def test_answer_and_usage_in_one_chunk(self) -> None:
        """Within one chunk answer comes before usage."""
        decoder = StageDecoder()
        events = decoder.decode(
            {
                "choices": [{"delta": {"content": "done"}}],
                "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
            }
        )
        assert [event.stage for event in events] == [
            Stage.REASONING_COMPLETE,
            Stage.ANSWER,
            Stage.USAGE,
        ]

    def test_malformed_chunk_is_skipped(self, chunks: Any) -> None:
        """A bad chunk yields nothing and does not end the session."""
        decoder = StageDecoder()

        assert decoder.decode("data: {broken") == []
        assert decoder.decode(["not", "a", "chunk"]) == []
        events = decoder.decode(chunks.answer("ok"))

        assert summary(events) == [("reasoning_complete", ""), ("answer", "ok")]
        assert decoder.finished is False

    def test_done_marker_yields_nothing(self) -> None:
        decoder = StageDecoder()
        assert decoder.decode("data: [DONE]") == []

    def test_fail_emits_terminal_error(self) -> None:
        decoder = StageDecoder(RequestSession(session_id="s2"))
        event = decoder.fail("Upstream read failed: boom")
        assert event.stage is Stage.ERROR
        assert event.text == "Upstream read failed: boom"
        assert event.terminal is True
        assert event.session_id == "s2"

    def test_terminal_event_only_once(self, chunks: Any) -> None:
        decoder = StageDecoder()
        decoder.complete()

        with pytest.raises(SessionFinishedError):
            decoder.complete()
        with pytest.raises(SessionFinishedError):
            decoder.fail("late")

    def test_decode_after_terminal_returns_nothing(self, chunks: Any) -> None:
        decoder = StageDecoder()
        decoder.fail("boom")
        assert decoder.decode(chunks.answer("ignored")) == []

    def test_default_session_ids_are_unique(self) -> None:
        assert StageDecoder().session.session_id != StageDecoder().session.session_id
