"""Completion backend interface and the data it exchanges with the loops."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class FinishReason(Enum):
    """Why a turn (or a whole loop) ended."""

    TOOL_CALLS = "tool_calls"
    STOP = "stop"
    EXIT_LOOP = "exit_loop"
    MAX_TURNS = "max_turns"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_backend(cls, value: str | None) -> "FinishReason":
        """Map a backend finish_reason string onto the closed set.

        Only ``tool_calls`` and ``stop`` are produced by a backend; anything
        else (``length``, ``content_filter``, None...) is UNRECOGNIZED.
        """
        if value == cls.TOOL_CALLS.value:
            return cls.TOOL_CALLS
        if value == cls.STOP.value:
            return cls.STOP
        return cls.UNRECOGNIZED


@dataclass
class ToolCallRequest:
    """A tool invocation requested by the model.

    ``arguments`` is passed through untouched; the loop never decodes it.
    """

    id: str
    function_name: str
    arguments: str = ""

    def to_param(self) -> dict[str, Any]:
        """Render as an OpenAI-style ``tool_calls`` entry."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.function_name,
                "arguments": self.arguments,
            },
        }


@dataclass
class Completion:
    """Authoritative result of a full (non-streaming) completion call."""

    finish_reason: FinishReason
    content: str = ""
    reasoning: str = ""
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    raw_finish_reason: str | None = None


@dataclass
class StreamDelta:
    """One incremental event of a streaming completion."""

    content: str = ""
    reasoning: str = ""


class CompletionBackend(Protocol):
    """Port the agent loops call to talk to a model.

    Implementations raise their own exceptions on transport or API
    failures; the loops let them propagate.
    """

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Completion:
        """Run one full completion over ``messages``."""
        ...

    def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncGenerator[StreamDelta, None]:
        """Yield the deltas of one streaming completion over ``messages``.

        The returned iterator must release the underlying connection when it
        is closed before being exhausted.
        """
        ...
