"""
Base Parser Interface
====================

This module defines the abstract base class that all rule parsers must implement.
Using an abstract base class ensures consistency across the Sigma and Suricata
parsers and keeps the repository's scan loop format-agnostic.

A parser takes one rule file and folds whatever ATT&CK references it finds into
the run's ScanState. Problems local to a file are logged and recorded as a
skip; they never abort the run.
"""

from abc import ABC, abstractmethod
from typing import Optional, Set, Dict, Any
import logging

from config import ENCODING
from core.scan_state import ScanState
from validators.security_validator import SecurityValidator

logger = logging.getLogger(__name__)


class BaseRuleParser(ABC):
    """
    Abstract base class for all rule parsers.

    Each parser is responsible for:
    1. Declaring the file extensions it handles
    2. Safely reading the file content
    3. Extracting ATT&CK technique references into the scan state
    4. Reporting files or lines it cannot use without raising
    """

    def __init__(self, parser_name: str):
        """
        Initialize the base parser with identification information.

        Args:
            parser_name: Human-readable name for this parser (e.g., "Sigma", "Suricata")
        """
        self.parser_name = parser_name
        self.parse_statistics = self._empty_statistics()

        logger.debug(f"Initialized {parser_name} parser")

    @staticmethod
    def _empty_statistics() -> Dict[str, int]:
        return {
            'files_processed': 0,
            'successful_parses': 0,
            'failed_parses': 0,
            'techniques_extracted': 0
        }

    @abstractmethod
    def parse(self, file_path: str, state: ScanState) -> bool:
        """
        Parse a rule file and record its technique references in state.

        Args:
            file_path: Path to the rule file to parse
            state: Run-wide accumulators

        Returns:
            bool: True if the file contributed to the scan, False if it was skipped

        Raises:
            Should not raise for problems local to the file - log them, record
            the skip in state and return False.
        """

    @abstractmethod
    def get_supported_extensions(self) -> Set[str]:
        """
        Get the file extensions this parser supports.

        Returns:
            Set[str]: Lower-case file extensions including the dot
        """

    def can_parse(self, file_path: str) -> bool:
        return file_path.lower().endswith(tuple(self.get_supported_extensions()))

    def safe_file_read(self, file_path: str) -> Optional[str]:
        """
        Safely read file content with size limits and error handling.

        Args:
            file_path: Path to file to read

        Returns:
            str: File content, or None if reading failed
        """
        is_valid, error_msg = SecurityValidator.validate_file_path(
            file_path,
            self.get_supported_extensions()
        )

        if not is_valid:
            logger.error(f"File validation failed for {file_path}: {error_msg}")
            return None

        try:
            with open(file_path, 'r', encoding=ENCODING, errors='replace') as f:
                content = f.read()

            logger.debug(f"Successfully read {len(content)} characters from {file_path}")
            return content

        except FileNotFoundError:
            logger.error(f"File not found: {file_path}")
            return None
        except PermissionError:
            logger.error(f"Permission denied reading: {file_path}")
            return None
        except OSError as e:
            logger.error(f"Unexpected error reading {file_path}: {str(e)}")
            return None

    def update_statistics(self, success: bool, techniques_found: int = 0) -> None:
        """
        Update parser statistics for monitoring and reporting.

        Args:
            success: Whether the parsing operation was successful
            techniques_found: Number of technique references extracted from the file
        """
        self.parse_statistics['files_processed'] += 1

        if success:
            self.parse_statistics['successful_parses'] += 1
            self.parse_statistics['techniques_extracted'] += techniques_found
        else:
            self.parse_statistics['failed_parses'] += 1

        if self.parse_statistics['files_processed'] % 100 == 0:
            self.log_statistics()

    def log_statistics(self) -> None:
        """Log current parsing statistics for monitoring purposes."""
        stats = self.parse_statistics
        total = stats['files_processed']
        success_rate = (stats['successful_parses'] / total * 100) if total > 0 else 0

        logger.info(f"{self.parser_name} Parser Statistics:")
        logger.info(f"  Files processed: {total}")
        logger.info(f"  Success rate: {success_rate:.1f}% ({stats['successful_parses']}/{total})")
        logger.info(f"  Technique references extracted: {stats['techniques_extracted']}")

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get current parser statistics as a dictionary.

        Returns:
            Dict[str, Any]: Current parsing statistics
        """
        stats: Dict[str, Any] = dict(self.parse_statistics)
        stats['parser_name'] = self.parser_name
        stats['success_rate'] = (
            stats['successful_parses'] / stats['files_processed'] * 100
            if stats['files_processed'] > 0 else 0
        )
        return stats

    def __str__(self) -> str:
        return f"{self.parser_name}Parser(files_processed={self.parse_statistics['files_processed']})"
