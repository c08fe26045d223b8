"""Infrastructure layer - external system integrations."""

from .event_log import LoggedEvent, VoiceEventLog
from .retry import (
    PermanentError,
    RetryableError,
    TransientError,
    is_transient_status,
    retry_operation,
)
from .usage_tracker import (
    ServiceType,
    calculate_claude_cost,
    get_usage_summary,
    log_claude_usage,
)

__all__ = [
    "LoggedEvent",
    "VoiceEventLog",
    "RetryableError",
    "TransientError",
    "PermanentError",
    "is_transient_status",
    "retry_operation",
    # Usage tracking
    "ServiceType",
    "log_claude_usage",
    "calculate_claude_cost",
    "get_usage_summary",
]
