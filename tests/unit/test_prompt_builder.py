"""Unit tests for neural prompt construction."""

import json

import pytest

from organic.prompts.builder import PromptBuilder, get_prompt_builder
from organic.prompts.templates import PromptTemplate, get_template
from organic.tasks.models import TaskDescriptor


@pytest.fixture
def builder():
    """Create a prompt builder."""
    return PromptBuilder()


@pytest.fixture
def summary_task():
    """Neural task with several output kinds."""
    return TaskDescriptor(
        name="summarize",
        input_schema={"text": "string"},
        output_schema={
            "summary": "string",
            "words": "integer",
            "score": "number",
            "flagged": "boolean",
            "tags": "array",
            "meta": "map",
            "raw": "any",
        },
        instructions="Summarize the text.",
    )


class TestPromptTemplate:
    """Tests for PromptTemplate."""

    def test_format(self):
        """Test placeholders are filled."""
        template = PromptTemplate(name="t", template="Hi {name}", variables=["name"])

        assert template.format(name="Ada") == "Hi Ada"

    def test_format_missing_variable(self):
        """Test a declared variable without a value is reported by name."""
        template = PromptTemplate(name="t", template="Hi {name}", variables=["name"])

        with pytest.raises(ValueError, match="Template t is missing values for: name"):
            template.format()

    def test_registry_lookup(self):
        """Test named template lookup."""
        assert get_template("response_format") is not None
        assert get_template("missing") is None

    def test_builder_template_override(self, sum_amounts_task):
        """Test a builder can replace a registered template."""
        custom = PromptTemplate(
            name="response_format",
            template="Answer with JSON only. Reasoning goes in {think_open}{think_close}.",
            variables=["think_open", "think_close"],
        )
        builder = PromptBuilder(templates={"response_format": custom})

        prompt = builder.build_neural_prompt(sum_amounts_task, {"amounts": [1]})

        assert prompt.endswith("Answer with JSON only. Reasoning goes in [THINK][/THINK].")
        assert "## Response Format" not in prompt


class TestBuildNeuralPrompt:
    """Tests for PromptBuilder.build_neural_prompt."""

    def test_sections(self, builder, sum_amounts_task):
        """Test the prompt carries name, instructions, inputs, schema and rules."""
        prompt = builder.build_neural_prompt(sum_amounts_task, {"amounts": [20, 22.5]})

        assert prompt.startswith("# Task: sum_amounts\n\n## Instructions\n")
        assert "Add up all amounts and return the total." in prompt
        assert "## Inputs\n- amounts: [20, 22.5]" in prompt
        assert (
            "## Output Schema\nYou must return a JSON object with the following fields:\n"
            "- total (number)"
        ) in prompt
        assert "[THINK]...[/THINK]" in prompt
        assert "only the JSON output" in prompt

    def test_inputs_section_omitted_without_inputs(self, builder, sum_amounts_task):
        """Test no inputs section is rendered for empty inputs."""
        prompt = builder.build_neural_prompt(sum_amounts_task, {})

        assert "## Inputs" not in prompt

    def test_string_inputs_are_quoted(self, builder, summary_task):
        """Test input values are rendered as JSON literals."""
        prompt = builder.build_neural_prompt(summary_task, {"text": "hello"})

        assert '- text: "hello"' in prompt

    def test_shared_builder(self):
        """Test the shared builder is a singleton."""
        assert get_prompt_builder() is get_prompt_builder()


class TestBuildParsingRetryPrompt:
    """Tests for PromptBuilder.build_parsing_retry_prompt."""

    def test_sections(self, builder, sum_amounts_task):
        """Test the clarifying prompt quotes the failure and forbids extra text."""
        prompt = builder.build_parsing_retry_prompt(
            sum_amounts_task,
            {"amounts": [1, 2]},
            "The total is three.",
            "Neural task 'sum_amounts' returned invalid JSON: Expecting value",
        )

        assert prompt.startswith("# Task: sum_amounts (RETRY - JSON Parsing Failed)")
        assert "## Previous Response (Failed to Parse)" in prompt
        assert "caused a parsing error: Neural task 'sum_amounts' returned invalid JSON" in prompt
        assert "```\nThe total is three.\n```" in prompt
        assert "## Output Schema (CRITICAL)" in prompt
        assert "- total (number)" in prompt
        assert "ONLY valid JSON" in prompt
        assert "Do NOT use [THINK] tags" in prompt
        assert '{\n  "total": 3.14\n}' in prompt

    def test_long_response_truncated(self, builder, sum_amounts_task):
        """Test quoted responses are truncated to 500 characters."""
        failed = "x" * 800

        prompt = builder.build_parsing_retry_prompt(sum_amounts_task, {}, failed, "bad")

        assert "x" * 500 + "..." in prompt
        assert "x" * 501 not in prompt

    def test_example_answer_covers_every_kind(self, builder, summary_task):
        """Test the example answer is valid JSON with a placeholder per field."""
        example = json.loads(builder.build_example_answer(summary_task))

        assert example == {
            "summary": "example",
            "words": 42,
            "score": 3.14,
            "flagged": True,
            "tags": [],
            "meta": {},
            "raw": "value",
        }
