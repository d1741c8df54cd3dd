"""Per-session JSONL event log for agent runs.

One file per session and day under ``log_dir``; every line is a single event
(``user_message``, ``llm_request``, ``tool_result``, ``agent_stop``...).
Fields whose value is ``None`` are left out of the line.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

OUTPUT_PREVIEW_CHARS = 2000


class ConversationLogger:
    """Appends agent events to ``{date}_{session_id}.jsonl`` files."""

    def __init__(self, log_dir: Path | str | None = None) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def get_log_file(self, session_id: str) -> Path:
        day = datetime.now().strftime("%Y-%m-%d")
        return self.log_dir / f"{day}_{session_id}.jsonl"

    def record(self, session_id: str, event: str, **fields: Any) -> dict[str, Any]:
        """Append one event line and return what was written."""
        line = {"event": event}
        line.update((key, value) for key, value in fields.items() if value is not None)
        line["session_id"] = session_id
        line["timestamp"] = datetime.now(timezone.utc).isoformat()

        with self.get_log_file(session_id).open("a", encoding="utf-8") as f:
            f.write(json.dumps(line, ensure_ascii=False))
            f.write("\n")
        return line

    def read(self, session_id: str) -> list[dict[str, Any]]:
        """Today's events for a session, oldest first."""
        path = self.get_log_file(session_id)
        if not path.exists():
            return []
        with path.open(encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]

    # Message events

    def log_user_message(self, session_id: str, content: str) -> None:
        self.record(session_id, "user_message", role="user", content=content)

    def log_assistant_message(self, session_id: str, content: str) -> None:
        self.record(session_id, "assistant_message", role="assistant", content=content)

    # Completion events

    def log_llm_request(
        self,
        session_id: str,
        model: str,
        messages_count: int,
        has_tools: bool,
        stream: bool = False,
    ) -> None:
        self.record(
            session_id,
            "llm_request",
            model=model,
            messages_count=messages_count,
            has_tools=has_tools,
            stream=stream,
        )

    def log_llm_response(
        self,
        session_id: str,
        has_content: bool,
        tool_calls_count: int,
        finish_reason: str | None = None,
    ) -> None:
        self.record(
            session_id,
            "llm_response",
            has_content=has_content,
            tool_calls_count=tool_calls_count,
            finish_reason=finish_reason,
        )

    def log_stream_abort(
        self,
        session_id: str,
        message: str,
        content_chars: int,
        reasoning_chars: int = 0,
    ) -> None:
        """A sink stopped a streaming call; sizes are of the partial text."""
        self.record(
            session_id,
            "stream_abort",
            message=message,
            content_chars=content_chars,
            reasoning_chars=reasoning_chars,
        )

    # Tool events

    def log_tool_call(
        self,
        session_id: str,
        tool_name: str,
        arguments: str,
        tool_call_id: str | None = None,
    ) -> None:
        self.record(
            session_id, "tool_call", tool_name=tool_name, arguments=arguments, tool_call_id=tool_call_id
        )

    def log_tool_result(
        self,
        session_id: str,
        tool_name: str,
        success: bool,
        output: str,
        error: str | None = None,
        tool_call_id: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Output is cut to ``OUTPUT_PREVIEW_CHARS``."""
        self.record(
            session_id,
            "tool_result",
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            success=success,
            output=(output or "")[:OUTPUT_PREVIEW_CHARS],
            error=error or None,
            duration_ms=duration_ms,
        )

    # Loop events

    def log_error(self, session_id: str, error: str, context: str | None = None) -> None:
        self.record(session_id, "error", error=error, context=context or None)

    def log_agent_stop(
        self,
        session_id: str,
        stop_reason: str,
        turns: int,
        tool_calls_total: int,
    ) -> None:
        self.record(
            session_id,
            "agent_stop",
            stop_reason=stop_reason,
            turns=turns,
            tool_calls_total=tool_calls_total,
        )


_conversation_logger: ConversationLogger | None = None


def get_conversation_logger(log_dir: Path | str | None = None) -> ConversationLogger:
    """Shared logger, created on first use."""
    global _conversation_logger
    if _conversation_logger is None:
        _conversation_logger = ConversationLogger(log_dir=log_dir)
    return _conversation_logger


def reset_conversation_logger() -> None:
    global _conversation_logger
    _conversation_logger = None
