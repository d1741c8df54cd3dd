"""Completion backend backed by the Groq chat completions API.

Groq speaks the OpenAI chat format, so messages and tool schemas go over
the wire as plain dicts.

Example:
    from groq import AsyncGroq
    from muagent.llm import GroqBackend

    backend = GroqBackend(AsyncGroq(api_key="..."), AgentConfig(model="qwen/qwen3-32b"))
    completion = await backend.complete([{"role": "user", "content": "Hi"}])
"""

import os
from collections.abc import AsyncGenerator
from typing import Any

from groq import AsyncGroq

from ..config import AgentConfig
from ..errors import BackendError
from .base import Completion, FinishReason, StreamDelta, ToolCallRequest


def _text_field(obj: Any, *names: str) -> str:
    """Return the first non-empty string attribute among ``names``."""
    for name in names:
        value = getattr(obj, name, None)
        if isinstance(value, str) and value:
            return value
    return ""


class GroqBackend:
    """CompletionBackend implementation that wraps AsyncGroq."""

    def __init__(
        self,
        client: AsyncGroq | None = None,
        config: AgentConfig | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            client: The AsyncGroq client to use. Built from GROQ_API_KEY when
                omitted.
            config: Request settings. Read on every call, so changes to the
                shared config object (e.g. the model) apply immediately.
        """
        self.client = client or AsyncGroq(api_key=os.getenv("GROQ_API_KEY"))
        self.config = config or AgentConfig()

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self.config.model

    def _request_params(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"
            params["parallel_tool_calls"] = self.config.parallel_tool_calls
        if self.config.response_format is not None:
            params["response_format"] = self.config.response_format
        if self.config.reasoning_format is not None:
            params["reasoning_format"] = self.config.reasoning_format
        return params

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Completion:
        """Run one full completion and normalize the first choice."""
        response = await self.client.chat.completions.create(
            **self._request_params(messages, tools)
        )

        if not response.choices:
            raise BackendError("no choices found", response=response)

        choice = response.choices[0]
        message = choice.message
        raw_finish_reason = choice.finish_reason

        tool_calls = [
            ToolCallRequest(
                id=tc.id,
                function_name=tc.function.name,
                arguments=tc.function.arguments or "",
            )
            for tc in (message.tool_calls or [])
        ]

        return Completion(
            finish_reason=FinishReason.from_backend(raw_finish_reason),
            content=message.content or "",
            reasoning=_text_field(message, "reasoning", "reasoning_content"),
            tool_calls=tool_calls,
            raw_finish_reason=raw_finish_reason,
        )

    async def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncGenerator[StreamDelta, None]:
        """Yield content and reasoning fragments as they arrive.

        The HTTP stream is closed when this generator finishes or is closed
        early by the consumer.
        """
        response = await self.client.chat.completions.create(
            **self._request_params(messages, tools), stream=True
        )
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                reasoning = _text_field(delta, "reasoning", "reasoning_content")
                content = _text_field(delta, "content")
                if reasoning or content:
                    yield StreamDelta(content=content, reasoning=reasoning)
        finally:
            await response.close()
