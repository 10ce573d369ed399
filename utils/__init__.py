"""
Utilities Package
================

This package contains utility modules that provide common functionality
across the application.

Available Utilities:
- logging_config: Centralized logging configuration
"""

from .logging_config import (
    ColoredFormatter,
    setup_logging,
    log_function_timing
)

__all__ = [
    'ColoredFormatter',
    'setup_logging',
    'log_function_timing'
]
