"""
Centralized Logging Configuration
================================

This module provides centralized logging configuration for the command line
tool. Diagnostics (skipped rules, malformed lines, matrix problems) go to
stderr through the root logger, so stdout only carries the run summary and
the mismatch report.

Key features:
- Colored console output when stderr is a terminal
- Optional rotating log file
- Quiet mode that keeps the console to warnings and errors
- Third-party libraries held at WARNING
"""

import functools
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional

from config import LOG_FORMAT, LOG_DATE_FORMAT

# Marks handlers installed by setup_logging so a second call replaces only them
_MANAGED_HANDLER_ATTR = '_s2an_managed'


class ColoredFormatter(logging.Formatter):
    """
    Custom formatter that adds color coding to console log messages.

    Uses ANSI color codes to highlight log levels and degrades to plain text
    when the stream is not a color-capable terminal.
    """

    COLOR_CODES = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def __init__(self, fmt=None, datefmt=None, use_colors=None, stream=None):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string
            use_colors: Whether to use colors (auto-detected if None)
            stream: Stream the formatter writes to, used for auto-detection
        """
        super().__init__(fmt, datefmt)

        if use_colors is None:
            use_colors = self._supports_color(stream or sys.stderr)

        self.use_colors = use_colors

    def format(self, record):
        formatted = super().format(record)

        if self.use_colors and record.levelname in self.COLOR_CODES:
            color_code = self.COLOR_CODES[record.levelname]
            reset_code = self.COLOR_CODES['RESET']

            # Only color the level name part of the message
            formatted = formatted.replace(
                record.levelname,
                f"{color_code}{record.levelname}{reset_code}",
                1
            )

        return formatted

    @staticmethod
    def _supports_color(stream) -> bool:
        """
        Detect if the given stream supports color output.

        Returns:
            bool: True if colors should be used, False otherwise
        """
        if os.environ.get('NO_COLOR', '').lower() in ('1', 'true', 'yes'):
            return False

        if os.environ.get('FORCE_COLOR', '').lower() in ('1', 'true', 'yes'):
            return True

        if not hasattr(stream, 'isatty') or not stream.isatty():
            return False

        term = os.environ.get('TERM', '').lower()
        return 'color' in term or term in ('xterm', 'xterm-256color', 'screen')


def _remove_managed_handlers(root_logger: logging.Logger) -> None:
    for handler in list(root_logger.handlers):
        if getattr(handler, _MANAGED_HANDLER_ATTR, False):
            root_logger.removeHandler(handler)
            handler.close()


def setup_logging(log_level: str = 'INFO',
                  log_file: Optional[str] = None,
                  enable_colors: bool = True,
                  quiet: bool = False,
                  max_file_size: int = 10 * 1024 * 1024,  # 10MB
                  backup_count: int = 5) -> Dict[str, Any]:
    """
    Configure logging for a run.

    Args:
        log_level: Minimum log level to capture ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_file: Path to log file (None for console-only logging)
        enable_colors: Whether to use colored console output
        quiet: Keep the console to warnings and errors (the log file, if any,
            still receives log_level)
        max_file_size: Maximum size for individual log files before rotation
        backup_count: Number of rotated log files to keep

    Returns:
        Dict[str, Any]: Configuration summary for verification

    Raises:
        ValueError: If log_level is not a logging level name

    Example:
        setup_logging('DEBUG')
        setup_logging('INFO', 's2an.log', quiet=True)
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {log_level}')

    root_logger = logging.getLogger()
    _remove_managed_handlers(root_logger)
    root_logger.setLevel(numeric_level)

    config_summary = {
        'log_level': log_level.upper(),
        'handlers': [],
        'features': []
    }

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(max(numeric_level, logging.WARNING) if quiet else numeric_level)

    if enable_colors:
        console_formatter = ColoredFormatter(LOG_FORMAT, LOG_DATE_FORMAT, stream=sys.stderr)
        if console_formatter.use_colors:
            config_summary['features'].append('colored_output')
    else:
        console_formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    console_handler.setFormatter(console_formatter)
    setattr(console_handler, _MANAGED_HANDLER_ATTR, True)
    root_logger.addHandler(console_handler)
    config_summary['handlers'].append('console')
    if quiet:
        config_summary['features'].append('quiet_console')

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(
            LOG_FORMAT + ' - [PID:%(process)d]',
            LOG_DATE_FORMAT
        ))
        setattr(file_handler, _MANAGED_HANDLER_ATTR, True)

        root_logger.addHandler(file_handler)
        config_summary['handlers'].append(f'file({log_file})')
        config_summary['file_config'] = {
            'path': str(log_path.absolute()),
            'max_size_mb': max_file_size // (1024 * 1024),
            'backup_count': backup_count
        }

    _configure_third_party_loggers()

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: {config_summary['log_level']} level, "
                 f"handlers: {', '.join(config_summary['handlers'])}")
    if config_summary['features']:
        logger.debug(f"Logging features enabled: {', '.join(config_summary['features'])}")

    return config_summary


def _configure_third_party_loggers():
    """Hold chatty third-party libraries at WARNING."""
    # HTTP stack used for the matrix download
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)

    logging.getLogger('yaml').setLevel(logging.WARNING)


def log_function_timing(func):
    """
    Decorator to log function execution time.

    Logs the elapsed time at DEBUG for both outcomes. Failures are re-raised
    for the caller to report.

    Example:
        @log_function_timing
        def run(self):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        start_time = time.time()

        try:
            result = func(*args, **kwargs)
            execution_time = time.time() - start_time
            logger.debug(f"{func.__name__} completed in {execution_time:.3f}s")
            return result

        except Exception as e:
            execution_time = time.time() - start_time
            logger.debug(f"{func.__name__} failed after {execution_time:.3f}s: {str(e)}")
            raise

    return wrapper
