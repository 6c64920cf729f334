"""
Generative-model client interface.

The engine only needs ``send(prompt)``. A client may run tool calls of its
own before answering; the engine consumes the final textual content. Clients
may return a plain string or any object exposing ``content`` and,
optionally, token usage counters.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass
class ModelResponse:
    """Final response of a generative-model call."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0
    cache_creation_tokens: int = 0
    model: str | None = None
    tool_call_count: int = 0

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "content": self.content,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cached_tokens": self.cached_tokens,
            "cache_creation_tokens": self.cache_creation_tokens,
            "model": self.model,
            "tool_call_count": self.tool_call_count,
        }


@runtime_checkable
class ModelClient(Protocol):
    """Anything that can answer a prompt."""

    def send(self, prompt: str) -> "ModelResponse | str | Any":
        """Send a prompt and return the final response."""
        ...


def response_text(response: Any) -> str:
    """Extract the final textual content from a client response."""
    if isinstance(response, str):
        return response
    content = getattr(response, "content", None)
    if isinstance(content, str):
        return content
    if content is None:
        return ""
    return str(content)


def token_count(response: Any, name: str) -> int:
    """Read an integer usage counter from a response, 0 when unavailable."""
    value = getattr(response, name, None)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0
