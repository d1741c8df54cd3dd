"""Agent loop implementation.

The tool loops repeat one cycle until the model is done:

    request completion -> model asks for tools -> run tools -> append results

The streaming variants make two backend calls per turn. The first one is
streamed so the caller sees text as it is produced. The second one is a
plain completion over the same history, used only for its finish reason and
tool calls: streamed deltas do not carry reliable tool-call data. On a
``stop`` turn the history keeps the streamed text, not the second call's.
"""

from __future__ import annotations

import inspect
import json
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any

from ..config import AgentConfig
from ..conversation_logger import ConversationLogger, get_conversation_logger
from ..errors import AbortStream, AbortToolLoop
from ..llm.base import Completion, CompletionBackend, FinishReason, ToolCallRequest
from ..llm.groq_backend import GroqBackend
from ..tools import ToolRegistry
from .messages import (
    Conversation,
    Message,
    assistant_message,
    assistant_tool_calls_message,
    message_text,
    tool_message,
)

logger = logging.getLogger(__name__)

ToolExecutor = Callable[[str, str], str | Awaitable[str]]
Sink = Callable[[str], Any]

EMPTY_RESULT = json.dumps({"error": "Function execution returned empty result"})


def failed_result(error: Exception) -> str:
    """Tool payload reporting an ordinary executor failure to the model."""
    return json.dumps({"error": f"Function execution failed: {error}"})


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass
class ToolLoopResult:
    """Result from running a tool loop."""

    finish_reason: FinishReason
    results: list[str] = field(default_factory=list)
    last_assistant_message: str = ""
    raw_finish_reason: str | None = None
    turns: int = 0


@dataclass
class _StreamedTurn:
    content: str = ""
    reasoning: str = ""


class Agent:
    """A named agent owning one conversation and one completion backend."""

    def __init__(
        self,
        name: str,
        backend: CompletionBackend | None = None,
        config: AgentConfig | None = None,
        tools: ToolRegistry | None = None,
        conversation: Conversation | None = None,
        conversation_logger: ConversationLogger | None = None,
        session_id: str | None = None,
    ) -> None:
        """Create an agent.

        Args:
            name: Human readable name, used in logs.
            backend: Completion backend. Defaults to a GroqBackend sharing
                ``config``.
            config: Agent settings (model, turn limit...).
            tools: Tools offered to the model by the tool loops. Their
                ``execute`` method is the default tool executor.
            conversation: Initial history.
            conversation_logger: JSONL logger, used when ``session_id`` is set.
            session_id: Enables conversation logging under this id.
        """
        self._name = name
        self.config = config or AgentConfig()
        self.backend = backend or GroqBackend(config=self.config)
        self.tools = tools
        self.conversation = conversation if conversation is not None else Conversation()
        self.session_id = session_id
        self.conv_logger = conversation_logger
        if self.conv_logger is None and session_id:
            self.conv_logger = get_conversation_logger()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def model(self) -> str:
        return self.config.model

    @model.setter
    def model(self, value: str) -> None:
        self.config.model = value

    @property
    def messages(self) -> list[Message]:
        """Copy of the current history."""
        return self.conversation.messages

    # -- plain completions --------------------------------------------------

    async def run(self, messages: Iterable[Message] | None = None) -> str:
        """Append ``messages``, run one completion and return its text."""
        self._begin(messages)
        completion = await self._complete(None)
        self._append_reply(completion.content)
        return completion.content

    async def run_with_reasoning(
        self, messages: Iterable[Message] | None = None
    ) -> tuple[str, str]:
        """Like ``run`` but also return the model's reasoning text."""
        self._begin(messages)
        completion = await self._complete(None)
        self._append_reply(completion.content)
        return completion.content, completion.reasoning

    async def run_stream(
        self,
        messages: Iterable[Message] | None,
        on_content: Sink,
    ) -> str:
        """Stream one completion, feeding each content fragment to ``on_content``.

        Raises:
            AbortStream: Re-raised when the sink asks to stop, with the
                partial text in ``content``. Nothing is appended then.
        """
        self._begin(messages)
        turn = await self._stream_turn(None, on_content, None, [])
        self._append_reply(turn.content)
        return turn.content

    async def run_stream_with_reasoning(
        self,
        messages: Iterable[Message] | None,
        on_content: Sink,
        on_reasoning: Sink,
    ) -> tuple[str, str]:
        """Stream one completion with separate content and reasoning sinks."""
        self._begin(messages)
        turn = await self._stream_turn(None, on_content, on_reasoning, [])
        self._append_reply(turn.content)
        return turn.content, turn.reasoning

    # -- tool loops ---------------------------------------------------------

    async def detect_tool_calls(
        self,
        messages: Iterable[Message] | None = None,
        tool_executor: ToolExecutor | None = None,
    ) -> ToolLoopResult:
        """Run the tool-calling loop with blocking completions.

        The loop has no turn limit unless ``config.max_turns`` is set. It
        ends when the model answers with ``stop``, when a tool raises
        ``AbortToolLoop`` or on any other finish reason.

        Args:
            messages: Messages appended to the history before the first turn.
            tool_executor: ``(function_name, arguments) -> result`` callable,
                sync or async. Defaults to the agent's tool registry.

        Returns:
            ToolLoopResult with the tool results in execution order.
        """
        executor = self._resolve_executor(tool_executor)
        self._begin(messages)
        result = ToolLoopResult(finish_reason=FinishReason.UNRECOGNIZED)

        while not self._turn_limit_reached(result):
            result.turns += 1
            logger.debug("%s: turn %d", self._name, result.turns)
            completion = await self._complete(self._tool_schemas())
            if await self._handle_turn(completion, completion.content, executor, result):
                break

        self._log_stop(result)
        return result

    async def detect_tool_calls_stream(
        self,
        messages: Iterable[Message] | None,
        tool_executor: ToolExecutor | None,
        on_content: Sink,
    ) -> ToolLoopResult:
        """Run the tool-calling loop, streaming each turn's text to ``on_content``.

        Raises:
            AbortStream: When the sink asks to stop. The signal carries the
                partial content and the tool results collected so far.
        """
        return await self._stream_tool_loop(messages, tool_executor, on_content, None)

    async def detect_tool_calls_stream_with_reasoning(
        self,
        messages: Iterable[Message] | None,
        tool_executor: ToolExecutor | None,
        on_content: Sink,
        on_reasoning: Sink,
    ) -> ToolLoopResult:
        """Streaming tool loop that also forwards reasoning fragments."""
        return await self._stream_tool_loop(
            messages, tool_executor, on_content, on_reasoning
        )

    async def _stream_tool_loop(
        self,
        messages: Iterable[Message] | None,
        tool_executor: ToolExecutor | None,
        on_content: Sink,
        on_reasoning: Sink | None,
    ) -> ToolLoopResult:
        executor = self._resolve_executor(tool_executor)
        self._begin(messages)
        result = ToolLoopResult(finish_reason=FinishReason.UNRECOGNIZED)
        schemas = self._tool_schemas()

        while not self._turn_limit_reached(result):
            result.turns += 1
            logger.debug("%s: streaming turn %d", self._name, result.turns)

            turn = await self._stream_turn(schemas, on_content, on_reasoning, result.results)
            # Second call: authoritative finish reason and tool calls
            completion = await self._complete(schemas)
            if await self._handle_turn(completion, turn.content, executor, result):
                break

        self._log_stop(result)
        return result

    # -- turn handling ------------------------------------------------------

    async def _handle_turn(
        self,
        completion: Completion,
        final_text: str,
        executor: ToolExecutor,
        result: ToolLoopResult,
    ) -> bool:
        """Apply one completion to the history. Returns True when the loop ends."""
        result.finish_reason = completion.finish_reason
        result.raw_finish_reason = completion.raw_finish_reason

        if completion.finish_reason is FinishReason.TOOL_CALLS:
            if not completion.tool_calls:
                logger.warning("%s: finish reason tool_calls without any tool call", self._name)
                return True
            if await self._execute_tool_calls(completion.tool_calls, executor, result):
                result.finish_reason = FinishReason.EXIT_LOOP
                return True
            return False

        if completion.finish_reason is FinishReason.STOP:
            result.last_assistant_message = final_text
            self._append_reply(final_text)
            return True

        logger.warning(
            "%s: unrecognized finish reason %r, stopping tool loop",
            self._name,
            completion.raw_finish_reason,
        )
        if self.session_id:
            self.conv_logger.log_error(
                self.session_id,
                f"Unrecognized finish reason: {completion.raw_finish_reason}",
                context="tool_loop",
            )
        return True

    async def _execute_tool_calls(
        self,
        tool_calls: list[ToolCallRequest],
        executor: ToolExecutor,
        result: ToolLoopResult,
    ) -> bool:
        """Run a batch of tool calls in order. Returns True if a tool aborted the loop."""
        self.conversation.add(assistant_tool_calls_message(tool_calls))

        for tool_call in tool_calls:
            if self.session_id:
                self.conv_logger.log_tool_call(
                    self.session_id,
                    tool_name=tool_call.function_name,
                    arguments=tool_call.arguments,
                    tool_call_id=tool_call.id,
                )

            aborted = False
            error: str | None = None
            start_time = time.time()
            try:
                content = await _maybe_await(
                    executor(tool_call.function_name, tool_call.arguments)
                )
                if content is not None and not isinstance(content, str):
                    content = json.dumps(content, ensure_ascii=False)
            except AbortToolLoop as signal:
                logger.info("%s: tool %s ended the loop: %s", self._name, tool_call.function_name, signal)
                aborted = True
                content = ""
            except Exception as e:
                error = str(e)
                content = failed_result(e)
            duration_ms = (time.time() - start_time) * 1000

            if not content:
                content = EMPTY_RESULT

            if self.session_id:
                self.conv_logger.log_tool_result(
                    self.session_id,
                    tool_name=tool_call.function_name,
                    success=error is None and not aborted,
                    output=content,
                    error=error,
                    tool_call_id=tool_call.id,
                    duration_ms=duration_ms,
                )

            result.results.append(content)
            self.conversation.add(tool_message(content, tool_call.id))

            if aborted:
                return True

        return False

    # -- backend calls ------------------------------------------------------

    async def _complete(self, tools: list[dict[str, Any]] | None) -> Completion:
        messages = self.conversation.messages
        if self.session_id:
            self.conv_logger.log_llm_request(
                self.session_id,
                model=self.config.model,
                messages_count=len(messages),
                has_tools=bool(tools),
            )

        completion = await self.backend.complete(messages, tools)

        if self.session_id:
            self.conv_logger.log_llm_response(
                self.session_id,
                has_content=bool(completion.content),
                tool_calls_count=len(completion.tool_calls),
                finish_reason=completion.raw_finish_reason,
            )
        return completion

    async def _stream_turn(
        self,
        tools: list[dict[str, Any]] | None,
        on_content: Sink,
        on_reasoning: Sink | None,
        results: list[str],
    ) -> _StreamedTurn:
        """Consume one streaming call, forwarding fragments to the sinks."""
        messages = self.conversation.messages
        if self.session_id:
            self.conv_logger.log_llm_request(
                self.session_id,
                model=self.config.model,
                messages_count=len(messages),
                has_tools=bool(tools),
                stream=True,
            )

        content: list[str] = []
        reasoning: list[str] = []
        try:
            async with aclosing(self.backend.stream(messages, tools)) as deltas:
                async for delta in deltas:
                    # Content before reasoning within one delta
                    if delta.content:
                        content.append(delta.content)
                        await _maybe_await(on_content(delta.content))
                    if delta.reasoning:
                        reasoning.append(delta.reasoning)
                        if on_reasoning is not None:
                            await _maybe_await(on_reasoning(delta.reasoning))
        except AbortStream as signal:
            signal.attach("".join(content), "".join(reasoning), results)
            logger.info("%s: stream stopped by sink: %s", self._name, signal)
            if self.session_id:
                self.conv_logger.log_stream_abort(
                    self.session_id,
                    message=signal.message,
                    content_chars=len(signal.content),
                    reasoning_chars=len(signal.reasoning),
                )
            raise

        return _StreamedTurn(content="".join(content), reasoning="".join(reasoning))

    # -- helpers ------------------------------------------------------------

    def _begin(self, messages: Iterable[Message] | None) -> None:
        new_messages = list(messages or [])
        self.conversation.add_many(new_messages)
        if self.session_id:
            for message in new_messages:
                if message.get("role") == "user":
                    self.conv_logger.log_user_message(self.session_id, message_text(message))

    def _append_reply(self, content: str) -> None:
        self.conversation.add(assistant_message(content))
        if self.session_id:
            self.conv_logger.log_assistant_message(self.session_id, content)

    def _resolve_executor(self, tool_executor: ToolExecutor | None) -> ToolExecutor:
        if tool_executor is not None:
            return tool_executor
        if self.tools is not None:
            return self.tools.execute
        raise ValueError("A tool executor or a tool registry is required")

    def _tool_schemas(self) -> list[dict[str, Any]] | None:
        if self.tools is None:
            return None
        return self.tools.get_tools_schema() or None

    def _turn_limit_reached(self, result: ToolLoopResult) -> bool:
        max_turns = self.config.max_turns
        if max_turns is None or result.turns < max_turns:
            return False
        logger.warning("%s: stopping tool loop after %d turns", self._name, result.turns)
        result.finish_reason = FinishReason.MAX_TURNS
        result.raw_finish_reason = None
        return True

    def _log_stop(self, result: ToolLoopResult) -> None:
        if self.session_id:
            self.conv_logger.log_agent_stop(
                self.session_id,
                stop_reason=result.finish_reason.value,
                turns=result.turns,
                tool_calls_total=len(result.results),
            )
