"""Usage tracking for billable LLM calls.

Logs Claude token usage to a JSONL file for cost monitoring and analysis.
"""

import json
import logging
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from projectflow.config import get_usage_log_path

logger = logging.getLogger(__name__)


class ServiceType(StrEnum):
    """Billable service types."""

    CLAUDE = "claude"


# Claude pricing per 1M tokens (USD)
CLAUDE_PRICING: dict[str, dict[str, float]] = {
    "claude-sonnet-4-5": {"input": 3.00, "output": 15.00},
    "claude-sonnet-4-0": {"input": 3.00, "output": 15.00},
    "claude-3-5-sonnet-20241022": {"input": 3.00, "output": 15.00},
    "claude-haiku-4-5": {"input": 1.00, "output": 5.00},
    "claude-3-5-haiku-20241022": {"input": 0.80, "output": 4.00},
    "claude-opus-4-1": {"input": 15.00, "output": 75.00},
}
DEFAULT_PRICING_MODEL = "claude-sonnet-4-5"


# =============================================================================
# Cost Calculation
# =============================================================================


def calculate_claude_cost(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Calculate Claude cost in USD. Unknown models are priced as the default."""
    pricing = CLAUDE_PRICING.get(model, CLAUDE_PRICING[DEFAULT_PRICING_MODEL])
    input_cost = (prompt_tokens / 1_000_000) * pricing["input"]
    output_cost = (completion_tokens / 1_000_000) * pricing["output"]
    return input_cost + output_cost


# =============================================================================
# Logging
# =============================================================================


def _log_entry(entry: dict[str, Any], log_path: Path | None = None) -> None:
    """Internal: write a log entry to JSONL file.

    Non-blocking: failures are logged but don't raise.
    """
    log_file = log_path or get_usage_log_path()

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with log_file.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as e:
        logger.warning(f"Failed to log usage: {e}")


def log_claude_usage(
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    operation: str = "process_voice_input",
    log_path: Path | None = None,
) -> None:
    """Log one Claude request."""
    cost = calculate_claude_cost(model, prompt_tokens, completion_tokens)
    entry = {
        "timestamp": datetime.now(UTC).isoformat(),
        "service": ServiceType.CLAUDE.value,
        "operation": operation,
        "model": model,
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
        "cost_usd": round(cost, 6),
    }
    _log_entry(entry, log_path)


def get_usage_summary(log_path: Path | None = None) -> dict[str, Any]:
    """Get summary of usage from log file, aggregated by model.

    Returns:
        Summary dict with per-model breakdowns and totals.
    """
    log_file = log_path or get_usage_log_path()

    if not log_file.exists():
        return {
            "total_cost_usd": 0.0,
            "total_requests": 0,
            "total_tokens": 0,
            "by_model": {},
        }

    by_model: dict[str, dict[str, Any]] = {}
    total_cost = 0.0
    total_requests = 0
    total_tokens = 0

    with log_file.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue

            model = entry.get("model", "unknown")
            cost = entry.get("cost_usd", 0)
            tokens = entry.get("total_tokens", 0)
            total_cost += cost
            total_tokens += tokens
            total_requests += 1

            stats = by_model.setdefault(model, {"count": 0, "cost_usd": 0.0, "total_tokens": 0})
            stats["count"] += 1
            stats["cost_usd"] += cost
            stats["total_tokens"] += tokens

    for stats in by_model.values():
        stats["cost_usd"] = round(stats["cost_usd"], 4)

    return {
        "total_cost_usd": round(total_cost, 4),
        "total_requests": total_requests,
        "total_tokens": total_tokens,
        "by_model": by_model,
    }
