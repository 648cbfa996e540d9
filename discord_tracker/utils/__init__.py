# Discord Tracker Utilities
"""Utility functions for Discord Tracker."""

from .logging_config import setup_logging, log_with_fields

__all__ = ["setup_logging", "log_with_fields"]
