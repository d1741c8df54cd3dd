"""Tools built from plain Python callables."""

import inspect
import json
from collections.abc import Callable
from typing import Any

from .base import Tool, ToolResult


class FunctionTool(Tool):
    """Expose a function (sync or async) as a tool.

    Example:
        def add(a: int, b: int) -> int:
            return a + b

        tool = FunctionTool(
            add,
            description="Add two integers",
            parameters={
                "type": "object",
                "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
                "required": ["a", "b"],
            },
        )

    Non-string return values are JSON-encoded; ``None`` becomes an empty
    output.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        description: str = "",
        parameters: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> None:
        self._func = func
        self._name = name or func.__name__
        self._description = description or inspect.getdoc(func) or ""
        self._parameters = parameters or {"type": "object", "properties": {}, "required": []}

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._parameters

    async def execute(self, **kwargs: Any) -> ToolResult:
        value = self._func(**kwargs)
        if inspect.isawaitable(value):
            value = await value

        if isinstance(value, ToolResult):
            return value
        if value is None:
            output = ""
        elif isinstance(value, str):
            output = value
        else:
            output = json.dumps(value, ensure_ascii=False)
        return ToolResult(success=True, output=output)
