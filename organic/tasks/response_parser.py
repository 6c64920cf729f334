"""
Extraction and parsing of JSON answers from generative responses.

Models are asked to answer with a single JSON object, optionally preceded by
reasoning wrapped in [THINK]...[/THINK]. Real responses drift from that, so
the JSON text is located in order of preference:

1. strip matched [THINK]...[/THINK] blocks
2. strip an unclosed [THINK] up to the first "{" after it
3. a fenced code block tagged ``json``
4. the first "{" ... last "}" span
5. everything from the first "{" to the end of the text
"""

import json
import re
from typing import Any

from loguru import logger

from organic.core.errors import ResponseParseError

THINK_OPEN = "[THINK]"
THINK_CLOSE = "[/THINK]"

_THINK_BLOCK = re.compile(r"\[THINK\](.*?)\[/THINK\]", re.DOTALL)
_UNCLOSED_THINK = re.compile(r"\[THINK\][^{]*(?=\{)", re.DOTALL)
_TRAILING_THINK = re.compile(r"\[THINK\].*$", re.DOTALL)
_FENCED_JSON = re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL | re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def extract_reasoning(text: str) -> list[str]:
    """Return the contents of every matched reasoning block."""
    return [block.strip() for block in _THINK_BLOCK.findall(text)]


def strip_reasoning(text: str) -> str:
    """Remove reasoning blocks, including an unclosed trailing one."""
    cleaned = _THINK_BLOCK.sub("", text)
    cleaned = _UNCLOSED_THINK.sub("", cleaned).strip()

    if THINK_OPEN in cleaned:
        # Unclosed block with no JSON after it
        cleaned = _TRAILING_THINK.sub("", cleaned).strip()
    return cleaned


def extract_json_text(text: str) -> str:
    """
    Locate the JSON portion of a response.

    Args:
        text: Raw response text.

    Returns:
        Best candidate for the JSON document, or the cleaned text when no
        candidate exists.

    Example:
        >>> extract_json_text('[THINK]adding[/THINK]{"total": 42.5}')
        '{"total": 42.5}'
    """
    cleaned = strip_reasoning(text)

    fenced = _FENCED_JSON.search(cleaned)
    if fenced:
        return fenced.group(1).strip()

    match = _JSON_OBJECT.search(cleaned)
    if match:
        return match.group(0)

    start = cleaned.find("{")
    if start != -1:
        return cleaned[start:]
    return cleaned


def normalize_keys(value: Any) -> Any:
    """Recursively convert mapping keys to strings through maps and sequences."""
    if isinstance(value, dict):
        return {str(key): normalize_keys(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [normalize_keys(item) for item in value]
    return value


def parse_neural_response(text: str, task_name: str) -> Any:
    """
    Parse a generative response into a JSON value.

    Args:
        text: Final textual content of the response.
        task_name: Task name for logging and error messages.

    Returns:
        Parsed JSON value with normalized keys.

    Raises:
        ResponseParseError: If no valid JSON could be extracted.
    """
    reasoning = extract_reasoning(text)
    if reasoning:
        preview = reasoning[0][:500]
        logger.debug(
            f"Captured {len(reasoning)} reasoning block(s) for task {task_name}: {preview}"
        )

    json_text = extract_json_text(text)
    logger.debug(
        f"Parsing response for task {task_name}: "
        f"{len(text)} chars, extracted {len(json_text)} chars"
    )

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse response for task {task_name} as JSON: {text[:200]!r}")
        raise ResponseParseError(f"Neural task '{task_name}' returned invalid JSON: {e}") from e

    return normalize_keys(parsed)
