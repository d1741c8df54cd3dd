"""Tool registry for managing and dispatching tools."""

import json
from typing import Any

from ..errors import AbortToolLoop, ToolExecutionError
from .base import Tool, ToolResult


class ToolRegistry:
    """Registry for available tools.

    ``execute`` has the tool-executor signature expected by the agent
    loops, so a registry can be passed to them directly::

        await agent.detect_tool_calls(messages, registry.execute)
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, tool: Tool) -> None:
        """Register a tool."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Unregister a tool by name."""
        if name in self._tools:
            del self._tools[name]

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def get_tools_schema(self) -> list[dict[str, Any]]:
        """Get schemas for all tools (for LLM function calling)."""
        return [tool.get_schema() for tool in self._tools.values()]

    async def dispatch(self, tool_name: str, args: dict[str, Any]) -> ToolResult:
        """Dispatch a tool call by name with arguments.

        Failures become unsuccessful results. ``AbortToolLoop`` is not a
        failure and propagates to the caller.
        """
        tool = self._tools.get(tool_name)

        if tool is None:
            return ToolResult(
                success=False,
                output="",
                error=f"Unknown tool: {tool_name}",
            )

        valid, error = tool.validate_args(args)
        if not valid:
            return ToolResult(
                success=False,
                output="",
                error=error,
            )

        try:
            return await tool.execute(**args)
        except AbortToolLoop:
            raise
        except Exception as e:
            return ToolResult(
                success=False,
                output="",
                error=f"Tool execution failed: {e}",
            )

    async def execute(self, function_name: str, arguments: str) -> str:
        """Run a tool from a raw model tool call.

        Args:
            function_name: Name of the tool requested by the model.
            arguments: JSON-encoded argument object, as sent by the model.

        Returns:
            The tool output.

        Raises:
            ToolExecutionError: If the arguments cannot be decoded or the
                tool reports a failure.
            AbortToolLoop: If the tool asks to end the loop.
        """
        try:
            args = json.loads(arguments) if arguments and arguments.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolExecutionError(
                f"Invalid JSON arguments for {function_name}: {e}",
                tool_name=function_name,
            ) from e

        if not isinstance(args, dict):
            raise ToolExecutionError(
                f"Arguments for {function_name} must be a JSON object",
                tool_name=function_name,
            )

        result = await self.dispatch(function_name, args)
        if not result.success:
            raise ToolExecutionError(
                result.error or "Unknown error", tool_name=function_name
            )
        return result.output
