"""Base tool interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# JSON Schema type -> accepted Python types. bool is rejected for numbers.
_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
}


@dataclass
class ToolResult:
    """Outcome of one tool execution."""

    success: bool
    output: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


class Tool(ABC):
    """A function the model can call by name."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name, as the model will call it."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, shown to the model."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema of the argument object."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool. May raise ``AbortToolLoop`` to end the loop."""

    def get_schema(self) -> dict[str, Any]:
        """Schema entry for the ``tools`` request parameter."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def validate_args(self, args: dict[str, Any]) -> tuple[bool, str | None]:
        """Check required fields and top-level types. Returns (valid, error_message)."""
        properties = self.parameters.get("properties", {})

        missing = [name for name in self.parameters.get("required", []) if name not in args]
        if missing:
            return False, f"Missing required argument: {missing[0]}"

        for key, value in args.items():
            expected = properties.get(key, {}).get("type")
            accepted = _JSON_TYPES.get(expected)
            if accepted is None:
                continue
            if isinstance(value, bool) and expected != "boolean":
                return False, f"Argument '{key}' must be {_article(expected)}"
            if not isinstance(value, accepted):
                return False, f"Argument '{key}' must be {_article(expected)}"

        return True, None


def _article(json_type: str) -> str:
    return f"an {json_type}" if json_type[0] in "aeiou" else f"a {json_type}"
