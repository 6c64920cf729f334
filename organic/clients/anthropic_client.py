"""Anthropic Messages API client."""

from typing import Any

from anthropic import Anthropic
from loguru import logger

from organic.clients.base import ModelResponse
from organic.core.config import Settings, get_settings


class AnthropicModelClient:
    """
    Generative-model client backed by the Anthropic Messages API.

    Example:
        >>> client = AnthropicModelClient(api_key="sk-ant-...")
        >>> response = client.send("Return {\\"ok\\": true}")
        >>> response.content
        '{"ok": true}'
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
        system_prompt: str | None = None,
        client: Any = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY.
            model: Model identifier.
            max_tokens: Maximum tokens per response.
            system_prompt: Optional system prompt sent with every request.
            client: Pre-built SDK client (mainly for tests).
        """
        self.model = model
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self._client = client or Anthropic(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AnthropicModelClient":
        """Create a client from engine settings."""
        settings = settings or get_settings()
        api_key = (
            settings.anthropic_api_key.get_secret_value()
            if settings.anthropic_api_key
            else None
        )
        return cls(api_key=api_key, model=settings.model, max_tokens=settings.max_tokens)

    def send(self, prompt: str) -> ModelResponse:
        """Send a single-turn prompt and return the final text response."""
        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.system_prompt:
            request["system"] = self.system_prompt

        logger.debug(f"Calling Anthropic API ({self.model}), prompt length {len(prompt)}")
        message = self._client.messages.create(**request)

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        tool_calls = sum(1 for block in message.content if getattr(block, "type", None) == "tool_use")
        usage = message.usage

        return ModelResponse(
            content=text,
            input_tokens=usage.input_tokens or 0,
            output_tokens=usage.output_tokens or 0,
            cached_tokens=getattr(usage, "cache_read_input_tokens", None) or 0,
            cache_creation_tokens=getattr(usage, "cache_creation_input_tokens", None) or 0,
            model=message.model,
            tool_call_count=tool_calls,
        )
