"""Shared utilities for Trip Album."""

from tripalbum.utils.logging import LogContext, get_logger, log_context, setup_logging

__all__ = ["LogContext", "get_logger", "log_context", "setup_logging"]
