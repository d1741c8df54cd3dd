"""Agent loop and conversation history."""

from .loop import EMPTY_RESULT, Agent, ToolExecutor, ToolLoopResult, failed_result
from .messages import (
    Conversation,
    Message,
    assistant_message,
    assistant_tool_calls_message,
    system_message,
    tool_message,
    user_message,
)

__all__ = [
    "EMPTY_RESULT",
    "Agent",
    "Conversation",
    "Message",
    "ToolExecutor",
    "ToolLoopResult",
    "assistant_message",
    "assistant_tool_calls_message",
    "failed_result",
    "system_message",
    "tool_message",
    "user_message",
]
