"""muagent: a small tool-calling agent runtime for chat completion models."""

from .agent import (
    Agent,
    Conversation,
    ToolLoopResult,
    assistant_message,
    system_message,
    tool_message,
    user_message,
)
from .config import AgentConfig, config_from_env
from .errors import (
    AbortStream,
    AbortToolLoop,
    AgentError,
    BackendError,
    ControlSignal,
    ToolExecutionError,
)
from .llm import Completion, CompletionBackend, FinishReason, GroqBackend, StreamDelta, ToolCallRequest
from .tools import ExitLoopTool, FunctionTool, Tool, ToolRegistry, ToolResult

__version__ = "0.1.0"

__all__ = [
    "AbortStream",
    "AbortToolLoop",
    "Agent",
    "AgentConfig",
    "AgentError",
    "BackendError",
    "Completion",
    "CompletionBackend",
    "ControlSignal",
    "Conversation",
    "ExitLoopTool",
    "FinishReason",
    "FunctionTool",
    "GroqBackend",
    "StreamDelta",
    "Tool",
    "ToolCallRequest",
    "ToolExecutionError",
    "ToolLoopResult",
    "ToolRegistry",
    "ToolResult",
    "assistant_message",
    "config_from_env",
    "system_message",
    "tool_message",
    "user_message",
]
