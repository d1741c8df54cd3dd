"""Tool that lets the model end the tool-calling loop."""

from typing import Any

from ..errors import AbortToolLoop
from .base import Tool, ToolResult


class ExitLoopTool(Tool):
    """Raise ``AbortToolLoop`` when called.

    Register it when the model should be able to stop a long tool session
    by itself, e.g. when the user says "exit".
    """

    def __init__(self, name: str = "say_exit", message: str = "Exiting the tool loop") -> None:
        self._name = name
        self.message = message

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return "End the current session. Call this when the user asks to exit or stop."

    @property
    def parameters(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}, "required": []}

    async def execute(self, **kwargs: Any) -> ToolResult:
        raise AbortToolLoop(self.message)
