"""
Rule Repository Management
=========================

This module discovers rule files under a directory and runs the matching
parser over each of them, one file at a time, accumulating results in a single
ScanState.

Key responsibilities:
1. Secure rule discovery across directory structures
2. Parser selection based on the requested rule format
3. Per-file error isolation - a broken rule never aborts the run
4. Statistics on discovery and parsing for the completion summary
"""

import os
import logging
import time
from typing import Any, Dict, List, Optional

from config import RULE_FORMAT_SIGMA, RULE_FORMAT_SURICATA, RULE_FORMATS
from core.coverage import CoverageAggregator
from core.scan_state import ScanState
from core.tag_analyzer import TagSequenceAnalyzer
from parsers.base_parser import BaseRuleParser
from parsers.sigma_parser import SigmaRuleParser
from parsers.suricata_parser import SuricataRuleParser
from validators.mitre_validator import ReferenceMatrix
from validators.security_validator import SecurityValidator

logger = logging.getLogger(__name__)


class RuleRepository:
    """
    Manages discovery and scanning of detection rules for one run.

    Attributes:
        rule_format: "sigma" or "suricata"
        parser: Parser used for every discovered file
        state: Run-wide accumulators (coverage index, findings, counters)
        parsing_stats: Discovery and parsing statistics
    """

    def __init__(self, rule_format: str = RULE_FORMAT_SIGMA,
                 reference_matrix: Optional[ReferenceMatrix] = None,
                 check_mismatches: bool = False):
        """
        Initialize the repository for a rule format.

        Args:
            rule_format: Rule format to scan ("sigma" or "suricata")
            reference_matrix: Technique -> tactics lookup for mismatch checks
            check_mismatches: Whether Sigma tactic tags are checked against the matrix
        """
        if rule_format not in RULE_FORMATS:
            raise ValueError(f"Unknown rule format '{rule_format}'. Expected one of {RULE_FORMATS}")

        self.rule_format = rule_format
        self.state = ScanState()
        self.parser = self._create_parser(rule_format, reference_matrix, check_mismatches)

        self.parsing_stats = {
            'discovery': {
                'directories_scanned': 0,
                'files_discovered': 0,
                'discovery_time_seconds': 0.0
            },
            'parsing': {
                'total_files': 0,
                'parsing_time_seconds': 0.0,
                'files_per_second': 0.0
            },
            'errors': []
        }

        logger.info(f"Rule repository initialized for {rule_format} rules")
        if check_mismatches and rule_format == RULE_FORMAT_SIGMA:
            logger.info("Technique/tactic mismatch checking enabled")

    @staticmethod
    def _create_parser(rule_format: str, reference_matrix: Optional[ReferenceMatrix],
                       check_mismatches: bool) -> BaseRuleParser:
        if rule_format == RULE_FORMAT_SURICATA:
            if check_mismatches:
                logger.info("Mismatch checking does not apply to Suricata rules - ignored")
            return SuricataRuleParser()
        analyzer = TagSequenceAnalyzer(reference_matrix, check_mismatches)
        return SigmaRuleParser(analyzer)

    def discover_rules(self, directory_path: str) -> List[str]:
        """
        Discover rule files for the configured format, recursively.

        Hidden directories are skipped. Files are returned in a stable order
        (directories and names sorted) so repeated runs produce identical layers.

        Args:
            directory_path: Root directory to search for rules

        Returns:
            List[str]: Rule file paths ready for scanning

        Raises:
            ValueError: If directory path fails validation
        """
        start_time = time.time()
        logger.info(f"Starting rule discovery in: {directory_path}")

        is_valid, error_msg = SecurityValidator.validate_directory_path(directory_path)
        if not is_valid:
            raise ValueError(f"Directory validation failed: {error_msg}")

        rule_files = []
        directories_scanned = 0

        for root, dirs, files in os.walk(directory_path):
            directories_scanned += 1

            dirs[:] = sorted(d for d in dirs if not d.startswith('.'))

            for file in sorted(files):
                file_path = os.path.join(root, file)
                if self.parser.can_parse(file_path):
                    rule_files.append(file_path)
                    logger.debug(f"Discovered rule file: {file_path}")

        discovery_time = time.time() - start_time
        self.parsing_stats['discovery'].update({
            'directories_scanned': directories_scanned,
            'files_discovered': len(rule_files),
            'discovery_time_seconds': discovery_time
        })

        logger.info(f"Rule discovery completed in {discovery_time:.2f}s:")
        logger.info(f"  - Directories scanned: {directories_scanned}")
        logger.info(f"  - Files discovered: {len(rule_files)}")

        return rule_files

    def scan_rules(self, file_paths: List[str]) -> ScanState:
        """
        Scan rule files sequentially into the run state.

        Args:
            file_paths: Rule files to scan, in order

        Returns:
            ScanState: The run state after every file has been processed
        """
        start_time = time.time()
        logger.info(f"Starting scan of {len(file_paths)} {self.rule_format} rule files")

        if self.rule_format == RULE_FORMAT_SURICATA:
            self._scan_suricata(file_paths)
        else:
            self._scan_sigma(file_paths)

        parsing_time = time.time() - start_time
        self.parsing_stats['parsing'].update({
            'total_files': len(file_paths),
            'parsing_time_seconds': parsing_time,
            'files_per_second': len(file_paths) / parsing_time if parsing_time > 0 else 0.0
        })

        self._log_parsing_summary()
        return self.state

    def scan_directory(self, directory_path: str) -> ScanState:
        return self.scan_rules(self.discover_rules(directory_path))

    def _scan_sigma(self, file_paths: List[str]) -> None:
        for i, file_path in enumerate(file_paths, 1):
            if i % 500 == 0:
                logger.info(f"Processing file {i}/{len(file_paths)}")
            self.state.files_scanned += 1
            try:
                self.parser.parse(file_path, self.state)
            except Exception as e:
                self._record_parse_error(file_path, e)

    def _scan_suricata(self, file_paths: List[str]) -> None:
        contributions = []
        for file_path in file_paths:
            self.state.files_scanned += 1
            try:
                contributions.append(self.parser.parse_file(file_path, self.state))
            except Exception as e:
                self._record_parse_error(file_path, e)
        self.state.index.merge(CoverageAggregator.fold(contributions))

    def _record_parse_error(self, file_path: str, error: Exception) -> None:
        error_msg = f"Error parsing {file_path}: {str(error)}"
        logger.error(error_msg)
        logger.debug("Parse error details", exc_info=True)
        self.parsing_stats['errors'].append(error_msg)
        self.state.record_skip(file_path, f"error: {error}")

    def _log_parsing_summary(self) -> None:
        state = self.state
        parsing = self.parsing_stats['parsing']

        logger.info("=" * 60)
        logger.info("RULE SCAN SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Files scanned: {state.files_scanned} in {parsing['parsing_time_seconds']:.2f}s")
        if self.rule_format == RULE_FORMAT_SIGMA:
            logger.info(f"Rules with tags: {state.rules_with_tags}")
        logger.info(f"Coverage: {len(state.index)} unique techniques, "
                    f"{state.index.total_associations} associations")
        if state.skipped_files:
            logger.warning(f"Skipped files: {len(state.skipped_files)}")
        if state.malformed_lines:
            logger.warning(f"Malformed rule lines: {state.malformed_lines}")
        logger.info("=" * 60)

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get current discovery, parsing and coverage statistics.

        Returns:
            Dict[str, Any]: Current statistics
        """
        return {
            'discovery': dict(self.parsing_stats['discovery']),
            'parsing': dict(self.parsing_stats['parsing']),
            'parser': self.parser.get_statistics(),
            'errors': list(self.parsing_stats['errors']),
            'coverage': {
                'unique_techniques': len(self.state.index),
                'total_associations': self.state.index.total_associations,
                'max_distinct_techniques': self.state.index.max_distinct_techniques,
                'rules_with_tags': self.state.rules_with_tags,
                'mismatch_findings': len(self.state.findings),
                'skipped_files': len(self.state.skipped_files),
                'malformed_lines': self.state.malformed_lines
            }
        }
