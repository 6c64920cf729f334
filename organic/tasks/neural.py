"""
Neural runner: execute a task's instructions with a generative model.

One attempt builds a prompt from the task's instructions, inputs and output
schema, sends it to the model client and parses the JSON answer. When the
answer cannot be parsed, a stricter clarifying prompt is sent exactly once.
This clarifying exchange is part of the same attempt and does not count
against the executor's retry budget.
"""

from typing import Any

from loguru import logger

from organic.clients.base import ModelClient, response_text
from organic.core.errors import ResponseParseError, TaskExecutionError, TaskValidationError
from organic.monitoring.metrics import MetricsTracker
from organic.prompts.builder import PromptBuilder, get_prompt_builder
from organic.tasks.coercion import validate
from organic.tasks.models import TaskDescriptor
from organic.tasks.response_parser import parse_neural_response


class NeuralRunner:
    """
    Run neural-capable tasks against a generative model client.

    Example:
        >>> runner = NeuralRunner(client=AnthropicModelClient())
        >>> runner.run(sum_amounts, {"amounts": [20, 22.5]})
        {'total': 42.5}
    """

    def __init__(
        self,
        client: ModelClient | None,
        metrics: MetricsTracker | None = None,
        prompt_builder: PromptBuilder | None = None,
        model: str | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            client: Generative model client. Neural tasks fail validation without one.
            metrics: Optional usage accumulator fed with every response.
            prompt_builder: Prompt builder (shared instance by default).
            model: Model id used for cost lookup when responses do not name one.
        """
        self.client = client
        self.metrics = metrics
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.model = model

    def run(self, task: TaskDescriptor, inputs: dict[str, Any]) -> Any:
        """
        Execute a neural task.

        Args:
            task: Neural-capable task descriptor.
            inputs: Validated input values.

        Returns:
            Output values validated against the task's output schema.

        Raises:
            TaskValidationError: If no client is configured or outputs are invalid.
            TaskExecutionError: If the clarifying response is also unparsable.
        """
        if self.client is None:
            raise TaskValidationError(
                task.name, "no generative model client configured for neural task"
            )

        prompt = self.prompt_builder.build_neural_prompt(task, inputs)
        text = self.send(prompt)

        try:
            parsed = parse_neural_response(text, task.name)
        except ResponseParseError as e:
            logger.warning(f"Task {task.name} response was not valid JSON, sending clarifying prompt")
            parsed = self._clarify(task, inputs, text, str(e))

        return validate(task.output_schema, parsed, "output")

    def _clarify(
        self,
        task: TaskDescriptor,
        inputs: dict[str, Any],
        failed_response: str,
        error_message: str,
    ) -> Any:
        prompt = self.prompt_builder.build_parsing_retry_prompt(
            task, inputs, failed_response, error_message
        )
        text = self.send(prompt)
        try:
            return parse_neural_response(text, task.name)
        except ResponseParseError as e:
            raise TaskExecutionError(task.name, str(e), e) from e

    def send(self, prompt: str) -> str:
        """Send a prompt, record usage and return the response text."""
        if self.client is None:
            raise RuntimeError("No generative model client configured")

        logger.debug(f"Sending prompt ({len(prompt)} chars)")
        response = self.client.send(prompt)

        if self.metrics is not None:
            self.metrics.record_request(response, getattr(response, "model", None) or self.model)

        text = response_text(response)
        logger.debug(f"Received response ({len(text)} chars)")
        return text
