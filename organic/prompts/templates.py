"""
Prompt templates for neural task execution.

This module provides the templates used to ask a generative model for a
task's output, and the stricter follow-up used after a response could not
be parsed as JSON.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# TEMPLATE MODEL
# =============================================================================


class PromptTemplate(BaseModel):
    """A named prompt section with ``str.format`` placeholders."""

    model_config = ConfigDict(frozen=True)

    name: str
    template: str
    description: str = ""
    variables: list[str] = Field(default_factory=list)

    def format(self, **values: Any) -> str:
        """
        Fill the template placeholders.

        Raises:
            ValueError: If a declared variable has no value.
        """
        missing = [v for v in self.variables if v not in values]
        if missing:
            raise ValueError(f"Template {self.name} is missing values for: {', '.join(missing)}")
        return self.template.format(**values)


# =============================================================================
# NEURAL TASK PROMPTS
# =============================================================================


RESPONSE_FORMAT = PromptTemplate(
    name="response_format",
    description="Answer formatting rules for neural tasks",
    template="""## Response Format
You may include your reasoning in {think_open}...{think_close} tags if helpful.
Use available tools as needed to complete the task.
After using tools (if needed), return your final answer as valid JSON matching the output schema above.
Your final JSON response should come after any tool calls and thinking.
Do not include explanations outside of {think_open} tags - only the JSON output.""",
    variables=["think_open", "think_close"],
)


PARSING_FAILURE = PromptTemplate(
    name="parsing_failure",
    description="Quote of a response that could not be parsed",
    template="""## Previous Response (Failed to Parse)
Your previous response caused a parsing error: {error_message}
Previous response preview:
```
{preview}
```""",
    variables=["error_message", "preview"],
)


STRICT_RESPONSE_FORMAT = PromptTemplate(
    name="strict_response_format",
    description="Answer formatting rules for the clarifying re-prompt",
    template="""## Response Format (CRITICAL)
IMPORTANT: Your response must be ONLY valid JSON. No other text.
Do NOT use {think_open} tags or any other text.
Do NOT include code blocks like ```json.
Return ONLY the JSON object, nothing else.
The JSON must match the output schema exactly.

Example correct format:
{example}""",
    variables=["think_open", "example"],
)


# =============================================================================
# TEMPLATE REGISTRY
# =============================================================================


ALL_TEMPLATES: dict[str, PromptTemplate] = {
    RESPONSE_FORMAT.name: RESPONSE_FORMAT,
    PARSING_FAILURE.name: PARSING_FAILURE,
    STRICT_RESPONSE_FORMAT.name: STRICT_RESPONSE_FORMAT,
}


def get_template(name: str) -> PromptTemplate | None:
    """
    Get a template by name.

    Args:
        name: Template name.

    Returns:
        PromptTemplate if found, None otherwise.
    """
    return ALL_TEMPLATES.get(name)
