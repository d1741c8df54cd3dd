"""Tests for the streaming tool-calling loops."""

import pytest

from muagent import AbortStream, AbortToolLoop, Agent, FinishReason, user_message
from muagent.llm import StreamDelta


class Collector:
    """Sink recording fragments; optionally aborts on the n-th call."""

    def __init__(self, abort_on: int | None = None) -> None:
        self.fragments: list[str] = []
        self.abort_on = abort_on

    def __call__(self, fragment: str) -> None:
        self.fragments.append(fragment)
        if self.abort_on is not None and len(self.fragments) == self.abort_on:
            raise AbortStream("enough")


async def echo_executor(function_name: str, arguments: str) -> str:
    return f"{function_name} done"


@pytest.mark.asyncio
async def test_streamed_text_becomes_final_message(backend) -> None:
    backend.add_stream("Hel", "lo ", "World")
    backend.add_stop("Hello World (second call)")
    sink = Collector()

    agent = Agent("Bob", backend=backend)
    result = await agent.detect_tool_calls_stream([user_message("hi")], echo_executor, sink)

    assert sink.fragments == ["Hel", "lo ", "World"]
    assert result.finish_reason == FinishReason.STOP
    assert result.last_assistant_message == "Hello World"
    assert agent.messages[-1] == {"role": "assistant", "content": "Hello World"}
    assert "".join(sink.fragments) == result.last_assistant_message


@pytest.mark.asyncio
async def test_two_calls_per_turn_over_same_history(backend) -> None:
    backend.add_stream("Let me check.")
    backend.add_tool_calls(("call_1", "lookup", "{}"))
    backend.add_stream("Found ", "it.")
    backend.add_stop("ignored")
    sink = Collector()

    agent = Agent("Bob", backend=backend)
    result = await agent.detect_tool_calls_stream([user_message("find it")], echo_executor, sink)

    assert len(backend.stream_calls) == 2
    assert len(backend.complete_calls) == 2
    for stream_call, complete_call in zip(backend.stream_calls, backend.complete_calls):
        assert stream_call[0] == complete_call[0]

    assert result.results == ["lookup done"]
    assert result.last_assistant_message == "Found it."
    assert sink.fragments == ["Let me check.", "Found ", "it."]
    roles = [m["role"] for m in agent.messages]
    assert roles == ["user", "assistant", "tool", "assistant"]
    # Text streamed during a tool turn is shown but not stored
    assert agent.messages[1]["content"] is None


@pytest.mark.asyncio
async def test_sink_abort_closes_stream_and_reraises(backend) -> None:
    backend.add_stream("one", "two", "three", "four")
    sink = Collector(abort_on=2)

    agent = Agent("Bob", backend=backend)
    with pytest.raises(AbortStream) as exc_info:
        await agent.detect_tool_calls_stream([user_message("hi")], echo_executor, sink)

    signal = exc_info.value
    assert signal.message == "enough"
    assert signal.content == "onetwo"
    assert signal.results == []
    assert sink.fragments == ["one", "two"]
    assert backend.yielded == 2
    assert backend.closed_streams == 1
    # No authoritative call and no assistant message after an abort
    assert backend.complete_calls == []
    assert agent.messages == [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_sink_abort_keeps_earlier_tool_results(backend) -> None:
    backend.add_stream("working")
    backend.add_tool_calls(("1", "step", "{}"))
    backend.add_stream("partial", "more")
    sink = Collector(abort_on=2)

    agent = Agent("Bob", backend=backend)
    with pytest.raises(AbortStream) as exc_info:
        await agent.detect_tool_calls_stream([user_message("go")], echo_executor, sink)

    assert exc_info.value.results == ["step done"]
    assert exc_info.value.content == "partial"


@pytest.mark.asyncio
async def test_async_sink(backend) -> None:
    backend.add_stream("a", "b")
    backend.add_stop()
    received: list[str] = []

    async def sink(fragment: str) -> None:
        received.append(fragment)

    agent = Agent("Bob", backend=backend)
    result = await agent.detect_tool_calls_stream([user_message("hi")], echo_executor, sink)

    assert received == ["a", "b"]
    assert result.last_assistant_message == "ab"


@pytest.mark.asyncio
async def test_tool_abort_in_streaming_loop(backend) -> None:
    backend.add_stream("Bye")
    backend.add_tool_calls(("x", "say_exit", "{}"), ("y", "other", "{}"))

    async def executor(function_name: str, arguments: str) -> str:
        raise AbortToolLoop("exit requested")

    agent = Agent("Bob", backend=backend)
    result = await agent.detect_tool_calls_stream([user_message("exit")], executor, Collector())

    assert result.finish_reason == FinishReason.EXIT_LOOP
    assert len(backend.complete_calls) == 1
    assert [m["tool_call_id"] for m in agent.messages if m["role"] == "tool"] == ["x"]


@pytest.mark.asyncio
async def test_stream_error_propagates_and_closes(backend) -> None:
    backend.add_stream("partial", ConnectionError("reset by peer"))

    agent = Agent("Bob", backend=backend)
    with pytest.raises(ConnectionError):
        await agent.detect_tool_calls_stream([user_message("hi")], echo_executor, Collector())

    assert backend.closed_streams == 1
    assert backend.complete_calls == []


@pytest.mark.asyncio
async def test_unrecognized_finish_in_streaming_loop(backend) -> None:
    backend.add_stream("cut")
    backend.add_finish("content_filter")

    agent = Agent("Bob", backend=backend)
    result = await agent.detect_tool_calls_stream([user_message("hi")], echo_executor, Collector())

    assert result.finish_reason == FinishReason.UNRECOGNIZED
    assert result.raw_finish_reason == "content_filter"
    assert result.last_assistant_message == ""
    assert agent.messages == [{"role": "user", "content": "hi"}]


class TestReasoningStream:
    """Tests for the reasoning-aware streaming loop."""

    @pytest.mark.asyncio
    async def test_content_and_reasoning_go_to_their_sinks(self, backend) -> None:
        backend.add_stream(
            StreamDelta(reasoning="Think"),
            StreamDelta(reasoning="ing..."),
            StreamDelta(content="Ans"),
            StreamDelta(content="wer", reasoning=" done"),
        )
        backend.add_stop()
        content, reasoning = Collector(), Collector()

        agent = Agent("Bob", backend=backend)
        result = await agent.detect_tool_calls_stream_with_reasoning(
            [user_message("why?")], echo_executor, content, reasoning
        )

        assert content.fragments == ["Ans", "wer"]
        assert reasoning.fragments == ["Think", "ing...", " done"]
        assert result.last_assistant_message == "Answer"
        assert agent.messages[-1] == {"role": "assistant", "content": "Answer"}

    @pytest.mark.asyncio
    async def test_content_delivered_before_reasoning_within_a_delta(self, backend) -> None:
        backend.add_stream(StreamDelta(content="A", reasoning="R"), StreamDelta(reasoning="S"))
        backend.add_stop()
        order: list[tuple[str, str]] = []

        agent = Agent("Bob", backend=backend)
        await agent.detect_tool_calls_stream_with_reasoning(
            [user_message("why?")],
            echo_executor,
            lambda fragment: order.append(("content", fragment)),
            lambda fragment: order.append(("reasoning", fragment)),
        )

        assert order == [("content", "A"), ("reasoning", "R"), ("reasoning", "S")]

    @pytest.mark.asyncio
    async def test_reasoning_sink_can_abort(self, backend) -> None:
        backend.add_stream(
            StreamDelta(reasoning="a"),
            StreamDelta(content="x"),
            StreamDelta(reasoning="b"),
            StreamDelta(content="never"),
        )
        content, reasoning = Collector(), Collector(abort_on=2)

        agent = Agent("Bob", backend=backend)
        with pytest.raises(AbortStream) as exc_info:
            await agent.detect_tool_calls_stream_with_reasoning(
                [user_message("why?")], echo_executor, content, reasoning
            )

        assert exc_info.value.reasoning == "ab"
        assert exc_info.value.content == "x"
        assert content.fragments == ["x"]
        assert backend.closed_streams == 1
