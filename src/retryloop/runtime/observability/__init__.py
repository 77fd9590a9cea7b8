"""Logging configuration for retry loops."""

from .logging import JsonFormatter, TextFormatter, configure_logging, get_logger

__all__ = ["configure_logging", "get_logger", "JsonFormatter", "TextFormatter"]
