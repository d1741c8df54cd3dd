"""Exceptions raised by the agent loops.

Two kinds of exceptions travel through a loop:

- Control signals (``AbortToolLoop``, ``AbortStream``) are raised on purpose
  by a tool executor or a stream sink to end the current loop early.
- Failures (``ToolExecutionError``, ``BackendError``) report something that
  went wrong.

The loops tell them apart by type, never by message text.
"""

from typing import Any


class AgentError(Exception):
    """Base class for every muagent exception."""


class ControlSignal(AgentError):
    """Cooperative request to terminate the current loop."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AbortToolLoop(ControlSignal):
    """Raised by a tool executor to stop the tool-calling loop.

    The loop ends with ``FinishReason.EXIT_LOOP`` and returns normally.
    """


class AbortStream(ControlSignal):
    """Raised by a content or reasoning sink to stop a streaming call.

    The loop closes the stream, fills in the partial state collected so far
    and re-raises the signal to the caller.
    """

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.content: str = ""
        self.reasoning: str = ""
        self.results: list[str] = []

    def attach(
        self,
        content: str = "",
        reasoning: str = "",
        results: list[str] | None = None,
    ) -> "AbortStream":
        """Record the partial output of the interrupted call."""
        self.content = content
        self.reasoning = reasoning
        self.results = list(results or [])
        return self


class ToolExecutionError(AgentError):
    """A tool failed in an ordinary way; the loop reports it to the model."""

    def __init__(self, message: str, tool_name: str | None = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class BackendError(AgentError):
    """The completion backend returned an unusable response."""

    def __init__(self, message: str, response: Any = None) -> None:
        super().__init__(message)
        self.response = response
