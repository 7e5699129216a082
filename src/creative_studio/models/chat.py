"""Assistant conversation types."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChatMessage:
    """One visible assistant turn."""
    role: str  # "user" or "model"
    text: str


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation returned by the assistant backend."""
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class ToolResult:
    """Synthetic result reported back for one tool call."""
    call: ToolCall
    result: str


@dataclass(frozen=True)
class AssistantReply:
    """One backend response: text and/or tool calls."""
    text: str | None = None
    tool_calls: tuple[ToolCall, ...] = ()
