"""Loguru sink configuration."""

import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from loguru import logger

from organic.core.config import Settings, get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure loguru based on settings.

    Replaces the default handler with a colourised stderr sink and, when
    ``log_file`` is set, adds a rotating file sink.

    Args:
        settings: Optional settings override. Uses default if not provided.
    """
    settings = settings or get_settings()
    level = "DEBUG" if settings.debug else settings.log_level

    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=level,
        format=LOG_FORMAT,
        colorize=True,
    )

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            format=LOG_FORMAT,
        )


def summarize_values(values: Any) -> Any:
    """Summarize a mapping for logging, truncating long strings and lists."""
    if not isinstance(values, Mapping):
        return values

    summary: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, str) and len(value) > 100:
            summary[key] = f"{value[:97]}... ({len(value)} chars)"
        elif isinstance(value, (list, tuple)) and len(value) > 5:
            summary[key] = f"{list(value[:3])!r}... ({len(value)} items)"
        else:
            summary[key] = value
    return summary
