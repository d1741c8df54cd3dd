"""Completion backends."""

from .base import Completion, CompletionBackend, FinishReason, StreamDelta, ToolCallRequest
from .groq_backend import GroqBackend

__all__ = [
    "Completion",
    "CompletionBackend",
    "FinishReason",
    "GroqBackend",
    "StreamDelta",
    "ToolCallRequest",
]
