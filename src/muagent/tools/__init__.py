"""Tool registry and tool implementations."""

from .base import Tool, ToolResult
from .exit import ExitLoopTool
from .function import FunctionTool
from .registry import ToolRegistry

__all__ = [
    "ExitLoopTool",
    "FunctionTool",
    "Tool",
    "ToolResult",
    "ToolRegistry",
]
