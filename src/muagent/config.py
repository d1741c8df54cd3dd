"""Agent configuration."""

import os
from dataclasses import dataclass
from typing import Any

from dotenv import find_dotenv, load_dotenv

DEFAULT_MODEL = "llama-3.3-70b-versatile"


@dataclass
class AgentConfig:
    """Configuration shared by an agent and its completion backend.

    ``max_turns`` is None by default: the tool loops keep going until the
    model answers with ``stop`` or a tool raises ``AbortToolLoop``.
    """

    model: str = DEFAULT_MODEL
    temperature: float = 0.0
    max_turns: int | None = None
    parallel_tool_calls: bool = False
    response_format: dict[str, Any] | None = None
    reasoning_format: str | None = None

    def __post_init__(self) -> None:
        if self.max_turns is not None and self.max_turns < 1:
            raise ValueError("max_turns must be a positive integer or None")


def config_from_env(load_env_file: bool = True) -> AgentConfig:
    """Load configuration from environment variables (and a .env file)."""
    if load_env_file:
        load_dotenv(find_dotenv(usecwd=True))

    max_turns = os.getenv("MUAGENT_MAX_TURNS")

    return AgentConfig(
        model=os.getenv("GROQ_MODEL", DEFAULT_MODEL),
        temperature=float(os.getenv("MUAGENT_TEMPERATURE", "0.0")),
        max_turns=int(max_turns) if max_turns else None,
        reasoning_format=os.getenv("MUAGENT_REASONING_FORMAT") or None,
    )
