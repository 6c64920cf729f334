"""Prompt construction for neural tasks."""

from organic.prompts.builder import PromptBuilder, get_prompt_builder
from organic.prompts.templates import PromptTemplate, get_template

__all__ = [
    "PromptBuilder",
    "PromptTemplate",
    "get_prompt_builder",
    "get_template",
]
