"""
Security Validator
=================

This module provides path validation for rule discovery and layer output.

Every directory the scanner walks, every rule file it reads and the output
path it writes must pass through these checks first. Failures are reported as
(is_valid, error_message) tuples so callers can decide whether a problem is
fatal (the rules directory) or local to one file.
"""

import os
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

from config import (
    MAX_FILE_SIZE,
    FORBIDDEN_PATH_PATTERNS,
    get_file_size_limit_mb
)

logger = logging.getLogger(__name__)


class SecurityValidator:
    """
    Validation utilities for file system paths and log-bound text.

    Security Principles Implemented:
    1. Size Limits: Prevents memory exhaustion from oversized rule files
    2. Extension Validation: Ensures only expected rule files are processed
    3. Pseudo Filesystem Protection: Never walks or writes into /proc, /sys or /dev
    4. Access Control: Verifies permissions before reading or writing
    """

    @staticmethod
    def _is_forbidden(path_obj: Path) -> Optional[str]:
        path_str = str(path_obj).replace('\\', '/') + '/'
        for forbidden_pattern in FORBIDDEN_PATH_PATTERNS:
            if path_str.startswith(forbidden_pattern):
                return forbidden_pattern
        return None

    @staticmethod
    def validate_file_path(file_path: str,
                           allowed_extensions: Optional[Iterable[str]] = None) -> Tuple[bool, str]:
        """
        Validate a rule file path before reading it.

        Args:
            file_path: File path to validate (can be relative or absolute)
            allowed_extensions: Allowed file extensions, lower-case with the dot
                (any extension when None)

        Returns:
            Tuple[bool, str]: (is_valid, error_message)

        Example:
            is_valid, error = SecurityValidator.validate_file_path("rules/proc_creation.yml", {'.yml'})
            if not is_valid:
                logger.error(f"File validation failed: {error}")
        """
        try:
            path_obj = Path(file_path).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            return False, f"Path resolution failed: {str(e)}"

        if not path_obj.is_file():
            return False, f"Path is not a regular file: {file_path}"

        if allowed_extensions is not None:
            file_extension = path_obj.suffix.lower()
            extensions = set(allowed_extensions)
            if file_extension not in extensions:
                return False, f"Invalid file extension '{file_extension}'. Allowed: {sorted(extensions)}"

        try:
            file_size = path_obj.stat().st_size
        except OSError as e:
            return False, f"Cannot read file size: {str(e)}"
        if file_size > MAX_FILE_SIZE:
            size_mb = file_size / (1024 * 1024)
            return False, f"File too large: {size_mb:.1f}MB (limit: {get_file_size_limit_mb()}MB)"

        forbidden = SecurityValidator._is_forbidden(path_obj)
        if forbidden:
            return False, f"Access to system files not allowed: {forbidden} detected"

        if not os.access(path_obj, os.R_OK):
            return False, f"File is not readable: {file_path}"

        return True, ""

    @staticmethod
    def validate_directory_path(dir_path: str) -> Tuple[bool, str]:
        """
        Validate the rules directory before recursive traversal.

        Args:
            dir_path: Directory path to validate

        Returns:
            Tuple[bool, str]: (is_valid, error_message)
        """
        if not dir_path:
            return False, "No directory given"

        path_obj = Path(dir_path).resolve()

        if not path_obj.exists():
            return False, f"Directory does not exist: {dir_path}"

        if not path_obj.is_dir():
            return False, f"Path is not a directory: {dir_path}"

        if not os.access(path_obj, os.R_OK):
            return False, f"Directory is not readable: {dir_path}"

        forbidden = SecurityValidator._is_forbidden(path_obj)
        if forbidden:
            return False, f"Access to system directory not allowed: {forbidden}"

        if Path(dir_path).is_symlink():
            # Symlinks are allowed but logged
            logger.warning(f"Directory is a symbolic link: {dir_path}")

        logger.debug(f"Directory validation passed: {path_obj}")
        return True, ""

    @staticmethod
    def validate_output_path(output_path: str) -> Tuple[bool, str]:
        """
        Validate output file path for writing the layer document.

        Args:
            output_path: Proposed output file path

        Returns:
            Tuple[bool, str]: (is_valid, error_message)
        """
        path_obj = Path(output_path).resolve()

        parent_dir = path_obj.parent
        if not parent_dir.exists():
            return False, f"Output directory does not exist: {parent_dir}"

        if not parent_dir.is_dir():
            return False, f"Output parent path is not a directory: {parent_dir}"

        if not os.access(parent_dir, os.W_OK):
            return False, f"Output directory is not writable: {parent_dir}"

        forbidden = SecurityValidator._is_forbidden(path_obj)
        if forbidden:
            return False, f"Cannot write to system location: {forbidden}"

        if path_obj.is_dir():
            return False, f"Output path is a directory: {output_path}"

        if path_obj.exists():
            if not os.access(path_obj, os.W_OK):
                return False, f"Existing output file is not writable: {output_path}"
            logger.info(f"Output file already exists and will be overwritten: {output_path}")

        return True, ""

    @staticmethod
    def is_safe_for_logging(text: str, max_length: int = 500) -> str:
        """
        Sanitize text for safe inclusion in log messages.

        Rule lines are attacker-influenced content; newlines and control
        characters are escaped so one rule line always produces one log line.

        Args:
            text: Text to include in logs
            max_length: Maximum length to prevent log bloat

        Returns:
            str: Sanitized text safe for logging
        """
        if not isinstance(text, str):
            return "[invalid input]"

        sanitized = text.replace('\n', '\\n').replace('\r', '\\r').replace('\t', '\\t')
        sanitized = ''.join(char for char in sanitized if ord(char) >= 32)

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length] + "[truncated]"

        return sanitized
