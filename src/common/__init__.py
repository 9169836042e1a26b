"""Common utilities for the journey planner services."""

__all__ = [
    "settings",
    "setup_otel",
    "setup_logging",
    "get_logger",
    "setup_metrics",
]
