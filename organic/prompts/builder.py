"""
Prompt builder for neural task execution.

Builds the prompt sent to the generative model for a task, and the stricter
clarifying prompt sent once when the first answer could not be parsed.
"""

import json
from collections.abc import Mapping
from typing import Any

from loguru import logger

from organic.prompts.templates import PromptTemplate, get_template
from organic.tasks.models import FieldKind, TaskDescriptor
from organic.tasks.response_parser import THINK_CLOSE, THINK_OPEN

# Literal used for each kind in the example answer of the clarifying prompt
EXAMPLE_VALUES: dict[FieldKind, str] = {
    FieldKind.STRING: '"example"',
    FieldKind.INTEGER: "42",
    FieldKind.NUMBER: "3.14",
    FieldKind.BOOLEAN: "true",
    FieldKind.ARRAY: "[]",
    FieldKind.MAP: "{}",
}
DEFAULT_EXAMPLE_VALUE = '"value"'


class PromptBuilder:
    """
    Build prompts for neural tasks.

    Example:
        >>> builder = PromptBuilder()
        >>> prompt = builder.build_neural_prompt(task, {"amounts": [20, 22.5]})
        >>> prompt.splitlines()[0]
        '# Task: sum_amounts'
    """

    def __init__(
        self,
        max_preview_length: int = 500,
        templates: Mapping[str, PromptTemplate] | None = None,
    ) -> None:
        """
        Initialize the prompt builder.

        Args:
            max_preview_length: Characters of a failed response quoted in
                the clarifying prompt.
            templates: Replacements for registered templates, keyed by name.
        """
        self._overrides = dict(templates or {})
        self._max_preview_length = max_preview_length

    # -------------------------------------------------------------------------
    # CORE BUILD METHODS
    # -------------------------------------------------------------------------

    def build_neural_prompt(self, task: TaskDescriptor, inputs: Mapping[str, Any]) -> str:
        """
        Build the prompt for a neural task attempt.

        Args:
            task: Task descriptor with instructions.
            inputs: Validated input values.

        Returns:
            Complete formatted prompt string.
        """
        sections = [
            f"# Task: {task.name}",
            self._build_instructions_section(task),
        ]

        inputs_section = self._build_inputs_section(inputs)
        if inputs_section:
            sections.append(inputs_section)

        sections.append(
            self._build_output_schema_section(
                task,
                "## Output Schema",
                "You must return a JSON object with the following fields:",
            )
        )
        sections.append(
            self._template("response_format").format(
                think_open=THINK_OPEN,
                think_close=THINK_CLOSE,
            )
        )

        prompt = "\n\n".join(sections)
        logger.debug(f"Built prompt for task {task.name} ({len(prompt)} chars)")
        return prompt

    def build_parsing_retry_prompt(
        self,
        task: TaskDescriptor,
        inputs: Mapping[str, Any],
        failed_response: str,
        error_message: str,
    ) -> str:
        """
        Build the clarifying prompt sent after a response failed to parse.

        Args:
            task: Task descriptor with instructions.
            inputs: Validated input values.
            failed_response: Text of the unparsable response.
            error_message: Parser error message.

        Returns:
            Complete formatted prompt string.
        """
        sections = [
            f"# Task: {task.name} (RETRY - JSON Parsing Failed)",
            self._build_instructions_section(task),
        ]

        inputs_section = self._build_inputs_section(inputs)
        if inputs_section:
            sections.append(inputs_section)

        sections.append(
            self._template("parsing_failure").format(
                error_message=error_message,
                preview=self._truncate_response(failed_response),
            )
        )
        sections.append(
            self._build_output_schema_section(
                task,
                "## Output Schema (CRITICAL)",
                "You MUST return valid JSON with exactly these fields:",
            )
        )
        sections.append(
            self._template("strict_response_format").format(
                think_open=THINK_OPEN,
                example=self.build_example_answer(task),
            )
        )

        return "\n\n".join(sections)

    # -------------------------------------------------------------------------
    # SECTIONS
    # -------------------------------------------------------------------------

    def _template(self, name: str) -> PromptTemplate:
        template = self._overrides.get(name) or get_template(name)
        if template is None:
            raise KeyError(f"Unknown prompt template: {name}")
        return template

    def _build_instructions_section(self, task: TaskDescriptor) -> str:
        return f"## Instructions\n{task.instructions or ''}"

    def _build_inputs_section(self, inputs: Mapping[str, Any]) -> str:
        if not inputs:
            return ""
        lines = ["## Inputs"]
        for key, value in inputs.items():
            lines.append(f"- {key}: {self._render_value(value)}")
        return "\n".join(lines)

    def _build_output_schema_section(
        self,
        task: TaskDescriptor,
        heading: str,
        lead: str,
    ) -> str:
        lines = [heading, lead]
        for key, kind in task.output_schema.items():
            lines.append(f"- {key} ({kind.value})")
        return "\n".join(lines)

    def build_example_answer(self, task: TaskDescriptor) -> str:
        """Render an example JSON answer with a placeholder per output field."""
        if not task.output_schema:
            return "{}"
        fields = [
            f'  "{key}": {EXAMPLE_VALUES.get(kind, DEFAULT_EXAMPLE_VALUE)}'
            for key, kind in task.output_schema.items()
        ]
        return "{\n" + ",\n".join(fields) + "\n}"

    def _render_value(self, value: Any) -> str:
        try:
            return json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            return repr(value)

    def _truncate_response(self, response: str) -> str:
        """Truncate a quoted response to the preview length."""
        if len(response) <= self._max_preview_length:
            return response
        return response[: self._max_preview_length] + "..."


# =============================================================================
# FACTORY AND SINGLETON
# =============================================================================


_builder: PromptBuilder | None = None


def get_prompt_builder() -> PromptBuilder:
    """
    Get the shared PromptBuilder instance.

    Returns:
        PromptBuilder singleton.
    """
    global _builder
    if _builder is None:
        _builder = PromptBuilder()
    return _builder
