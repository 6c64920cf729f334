"""Generative-model clients."""

from organic.clients.anthropic_client import AnthropicModelClient
from organic.clients.base import ModelClient, ModelResponse, response_text, token_count

__all__ = [
    "AnthropicModelClient",
    "ModelClient",
    "ModelResponse",
    "response_text",
    "token_count",
]
