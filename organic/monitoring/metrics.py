"""
Usage metrics for generative-model calls.

Provides a thread-safe accumulator for request, token, and cost counters:
- MetricsTracker: Record per-request usage and report cumulative totals
- ModelPricing: Per-model input/output pricing in USD per 1M tokens
"""

import threading
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from organic.clients.base import token_count

MAX_RECENT_REQUESTS = 100


@dataclass(frozen=True)
class ModelPricing:
    """Per-model input/output pricing in USD per 1M tokens."""

    input_per_1m: float
    output_per_1m: float


DEFAULT_PRICING: dict[str, ModelPricing] = {
    "claude-opus-4": ModelPricing(input_per_1m=15.0, output_per_1m=75.0),
    "claude-sonnet-4": ModelPricing(input_per_1m=3.0, output_per_1m=15.0),
    "claude-3-5-haiku": ModelPricing(input_per_1m=0.8, output_per_1m=4.0),
}


class MetricsTracker:
    """
    Accumulate token usage and estimated cost across model requests.

    One tracker is owned by each executor; parallel attempts record into it
    concurrently, so every read and write holds the tracker's lock.

    Usage:
        tracker = MetricsTracker()
        tracker.record_request(response, "claude-sonnet-4-20250514")
        tracker.cumulative_stats()["totalTokens"]
    """

    def __init__(self, pricing: Mapping[str, ModelPricing] | None = None) -> None:
        self._lock = threading.Lock()
        self._pricing = dict(DEFAULT_PRICING if pricing is None else pricing)
        self._init_counters()

    def _init_counters(self) -> None:
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_cached_tokens = 0
        self.total_cache_creation_tokens = 0
        self.request_count = 0
        self.total_cost = 0.0
        self._requests: deque[dict[str, Any]] = deque(maxlen=MAX_RECENT_REQUESTS)

    def record_request(self, response: Any, model: str | None = None) -> None:
        """Record token usage from a model response."""
        if response is None:
            return

        model = model or getattr(response, "model", None) or "unknown"
        input_tokens = token_count(response, "input_tokens")
        output_tokens = token_count(response, "output_tokens")
        cached_tokens = token_count(response, "cached_tokens")
        cache_creation_tokens = token_count(response, "cache_creation_tokens")
        cost = self.estimate_cost(input_tokens, output_tokens, model)

        with self._lock:
            self.total_input_tokens += input_tokens
            self.total_output_tokens += output_tokens
            self.total_cached_tokens += cached_tokens
            self.total_cache_creation_tokens += cache_creation_tokens
            self.request_count += 1
            self.total_cost += cost
            self._requests.append(
                {
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "model": model,
                    "input_tokens": input_tokens,
                    "output_tokens": output_tokens,
                    "cached_tokens": cached_tokens,
                    "cache_creation_tokens": cache_creation_tokens,
                    "cost": round(cost, 6),
                }
            )

    def estimate_cost(self, input_tokens: int, output_tokens: int, model: str) -> float:
        """Estimate cost in USD, 0.0 for models without pricing."""
        pricing = self._lookup_pricing(model)
        if pricing is None:
            return 0.0
        return (input_tokens / 1_000_000) * pricing.input_per_1m + (
            output_tokens / 1_000_000
        ) * pricing.output_per_1m

    def _lookup_pricing(self, model: str) -> ModelPricing | None:
        direct = self._pricing.get(model)
        if direct is not None:
            return direct

        # Longest matching prefix, so dated model ids resolve to their family
        for prefix in sorted(self._pricing, key=len, reverse=True):
            if prefix != "*" and model.startswith(prefix):
                return self._pricing[prefix]

        wildcard = self._pricing.get("*")
        if wildcard is None:
            logger.debug(f"No pricing for model {model}")
        return wildcard

    def cumulative_stats(self) -> dict[str, Any]:
        """Get cumulative statistics."""
        with self._lock:
            return {
                "totalTokens": self.total_input_tokens + self.total_output_tokens,
                "inputTokens": self.total_input_tokens,
                "outputTokens": self.total_output_tokens,
                "cachedTokens": self.total_cached_tokens,
                "cacheCreationTokens": self.total_cache_creation_tokens,
                "requestCount": self.request_count,
                "estimatedCost": round(self.total_cost, 6),
            }

    def recent_requests(self, limit: int = 10) -> list[dict[str, Any]]:
        """Get the most recent request records, oldest first."""
        with self._lock:
            if limit <= 0:
                return []
            return list(self._requests)[-limit:]

    def reset(self) -> None:
        """Reset all counters."""
        with self._lock:
            self._init_counters()

    def to_prometheus(self, prefix: str = "organic") -> str:
        """Export counters in Prometheus exposition format."""
        stats = self.cumulative_stats()
        lines = []

        lines.append(f"# HELP {prefix}_llm_requests_total Generative model requests")
        lines.append(f"# TYPE {prefix}_llm_requests_total counter")
        lines.append(f"{prefix}_llm_requests_total {stats['requestCount']}")

        lines.append(f"# HELP {prefix}_tokens_input Total input tokens")
        lines.append(f"# TYPE {prefix}_tokens_input counter")
        lines.append(f"{prefix}_tokens_input {stats['inputTokens']}")

        lines.append(f"# HELP {prefix}_tokens_output Total output tokens")
        lines.append(f"# TYPE {prefix}_tokens_output counter")
        lines.append(f"{prefix}_tokens_output {stats['outputTokens']}")

        lines.append(f"# HELP {prefix}_estimated_cost_usd Estimated spend")
        lines.append(f"# TYPE {prefix}_estimated_cost_usd counter")
        lines.append(f"{prefix}_estimated_cost_usd {stats['estimatedCost']}")

        return "\n".join(lines) + "\n"
