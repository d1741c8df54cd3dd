"""Scripted completion backend for driving the agent loops."""

import copy
from typing import Any

import pytest

from muagent.llm import Completion, FinishReason, StreamDelta, ToolCallRequest


class ScriptedBackend:
    """Backend replaying queued completions and streams in order.

    Queued exceptions are raised instead of being returned / yielded.
    """

    def __init__(self) -> None:
        self.completions: list[Completion | Exception] = []
        self.streams: list[list[StreamDelta | Exception]] = []
        self.complete_calls: list[tuple[list[dict[str, Any]], Any]] = []
        self.stream_calls: list[tuple[list[dict[str, Any]], Any]] = []
        self.yielded = 0
        self.closed_streams = 0

    def add_stop(self, content: str = "", reasoning: str = "") -> None:
        self.completions.append(
            Completion(
                finish_reason=FinishReason.STOP,
                content=content,
                reasoning=reasoning,
                raw_finish_reason="stop",
            )
        )

    def add_tool_calls(self, *calls: tuple[str, str, str]) -> None:
        self.completions.append(
            Completion(
                finish_reason=FinishReason.TOOL_CALLS,
                tool_calls=[ToolCallRequest(id=i, function_name=n, arguments=a) for i, n, a in calls],
                raw_finish_reason="tool_calls",
            )
        )

    def add_finish(self, raw_finish_reason: str | None) -> None:
        self.completions.append(
            Completion(
                finish_reason=FinishReason.from_backend(raw_finish_reason),
                raw_finish_reason=raw_finish_reason,
            )
        )

    def add_stream(self, *deltas: StreamDelta | str | Exception) -> None:
        self.streams.append(
            [StreamDelta(content=d) if isinstance(d, str) else d for d in deltas]
        )

    async def complete(self, messages, tools=None) -> Completion:
        self.complete_calls.append((copy.deepcopy(messages), tools))
        item = self.completions.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def stream(self, messages, tools=None):
        self.stream_calls.append((copy.deepcopy(messages), tools))
        deltas = self.streams.pop(0)
        try:
            for delta in deltas:
                if isinstance(delta, Exception):
                    raise delta
                self.yielded += 1
                yield delta
        finally:
            self.closed_streams += 1


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()
