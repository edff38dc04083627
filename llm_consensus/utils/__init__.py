"""Utility modules for resilient provider calls."""

from .cost_tracker import PriceConfig, UsageTracker
from .logging_config import setup_logging
from .rate_limiter import AsyncRateLimiter, retry_with_backoff

__all__ = [
    "PriceConfig",
    "UsageTracker",
    "setup_logging",
    "AsyncRateLimiter",
    "retry_with_backoff",
]
