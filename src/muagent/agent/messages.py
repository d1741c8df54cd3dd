"""Conversation history.

Messages are OpenAI-style dicts, the format the backends send as-is.
"""

import json
from collections.abc import Iterable, Iterator
from typing import Any

from ..llm.base import ToolCallRequest

Message = dict[str, Any]


def system_message(content: str) -> Message:
    return {"role": "system", "content": content}


def user_message(content: str) -> Message:
    return {"role": "user", "content": content}


def assistant_message(content: str) -> Message:
    return {"role": "assistant", "content": content}


def assistant_tool_calls_message(tool_calls: Iterable[ToolCallRequest]) -> Message:
    """Assistant turn recording every tool call requested by the model."""
    return {
        "role": "assistant",
        "content": None,
        "tool_calls": [tc.to_param() for tc in tool_calls],
    }


def tool_message(content: str, tool_call_id: str) -> Message:
    return {"role": "tool", "tool_call_id": tool_call_id, "content": content}


def message_text(message: Message) -> str:
    """Flatten a message's content, joining text parts in order."""
    content = message.get("content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return "".join(
        part.get("text", "") for part in content
        if isinstance(part, dict) and part.get("type", "text") == "text"
    )


class Conversation:
    """Ordered, mutable list of messages owned by one agent.

    Do not mutate a conversation while a loop that uses it is running.
    """

    def __init__(self, messages: Iterable[Message] | None = None) -> None:
        self._messages: list[Message] = list(messages or [])

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    @property
    def messages(self) -> list[Message]:
        """A shallow copy of the messages."""
        return list(self._messages)

    def add(self, message: Message) -> None:
        self._messages.append(message)

    def add_many(self, messages: Iterable[Message]) -> None:
        self._messages.extend(messages)

    def prepend(self, message: Message) -> None:
        self._messages.insert(0, message)

    def prepend_many(self, messages: Iterable[Message]) -> None:
        self._messages[0:0] = list(messages)

    def replace(self, messages: Iterable[Message]) -> None:
        """Replace the whole history."""
        self._messages = list(messages)

    def reset(self) -> None:
        self._messages = []

    def first(self) -> Message | None:
        return self._messages[0] if self._messages else None

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def get(self, index: int) -> Message | None:
        """Message at ``index``, or None when out of range (no negative indexing)."""
        if index < 0 or index >= len(self._messages):
            return None
        return self._messages[index]

    def replace_at(self, index: int, message: Message) -> bool:
        """Replace the message at ``index``. Returns False when out of range."""
        if index < 0 or index >= len(self._messages):
            return False
        self._messages[index] = message
        return True

    def first_n(self, n: int) -> list[Message]:
        if n <= 0:
            return []
        return self._messages[:n]

    def last_n(self, n: int) -> list[Message]:
        if n <= 0:
            return []
        return self._messages[-n:]

    def remove_first(self) -> None:
        if self._messages:
            del self._messages[0]

    def remove_last(self) -> None:
        if self._messages:
            self._messages.pop()

    def remove_last_n(self, n: int) -> None:
        if n <= 0:
            return
        del self._messages[-n:]

    def system_messages(self) -> list[Message]:
        return [m for m in self._messages if m.get("role") == "system"]

    def to_json(self) -> str:
        return json.dumps(self._messages, ensure_ascii=False)

    def to_pretty_json(self) -> str:
        return json.dumps(self._messages, ensure_ascii=False, indent=2)

    def to_display_rows(self) -> list[tuple[str, str]]:
        """(role, text) pairs, e.g. for printing the history."""
        return [(m.get("role", ""), message_text(m)) for m in self._messages]
