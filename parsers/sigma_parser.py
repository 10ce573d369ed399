"""
Sigma Rule Parser
=================

This module reads Sigma rule files and hands their ``tags`` list to the
TagSequenceAnalyzer.

Sigma rules are YAML documents. A file may hold several documents (rule
collections with an ``action: global`` header); the first mapping document is
the one whose tags describe the rule. Only the tags and the title are used -
the detection logic itself is never validated.
"""

import logging
from typing import Any, Dict, Optional, Set

import yaml

from config import SIGMA_EXTENSIONS
from core.scan_state import ScanState
from core.tag_analyzer import TagSequenceAnalyzer
from models.rule_tag_model import TagTypeError
from parsers.base_parser import BaseRuleParser

logger = logging.getLogger(__name__)


class SigmaRuleParser(BaseRuleParser):
    """
    Parser for Sigma detection rules.

    Attributes:
        analyzer: Tag sequence analyzer that turns tag lists into coverage
    """

    def __init__(self, analyzer: TagSequenceAnalyzer):
        super().__init__("Sigma")
        self.analyzer = analyzer

    def get_supported_extensions(self) -> Set[str]:
        return set(SIGMA_EXTENSIONS)

    @staticmethod
    def load_rule_document(content: str) -> Optional[Dict[str, Any]]:
        """
        Return the first mapping document in a YAML stream.

        Raises:
            yaml.YAMLError: If the YAML is malformed before a mapping is found
        """
        # safe_load_all prevents arbitrary object construction
        for document in yaml.safe_load_all(content):
            if isinstance(document, dict):
                return document
        return None

    def parse(self, file_path: str, state: ScanState) -> bool:
        """
        Parse a Sigma rule and record its technique tags.

        The parsing process follows these steps:
        1. Safely read and parse the YAML content
        2. Skip the rule if it has no tags
        3. Pass the tag list to the analyzer

        Args:
            file_path: Path to the Sigma rule file
            state: Run-wide accumulators

        Returns:
            bool: True if the rule's tags were analyzed, False if it was skipped
        """
        logger.debug(f"Parsing Sigma rule: {file_path}")

        content = self.safe_file_read(file_path)
        if content is None:
            return self._skip(file_path, state, "unreadable")

        try:
            rule_data = self.load_rule_document(content)
        except yaml.YAMLError as e:
            logger.debug(f"YAML parsing error in {file_path}: {str(e)}")
            return self._skip(file_path, state, "parsing failed")

        tags = rule_data.get('tags') if rule_data else None
        if tags is None:
            return self._skip(file_path, state, "no tags")

        if not isinstance(tags, list):
            return self._skip(file_path, state, "tags is not a list")

        title = rule_data.get('title')
        if title is not None:
            title = str(title).strip()

        index_size = state.index.total_associations
        try:
            self.analyzer.analyze(tags, file_path, state, rule_title=title)
        except TagTypeError as e:
            return self._skip(file_path, state, str(e))

        state.rules_with_tags += 1
        techniques_found = state.index.total_associations - index_size
        if techniques_found == 0:
            logger.debug(f"No technique tags in Sigma rule: {file_path}")

        self.update_statistics(True, techniques_found)
        return True

    def _skip(self, file_path: str, state: ScanState, reason: str) -> bool:
        logger.warning(f"Ignoring rule {file_path} ({reason})")
        state.record_skip(file_path, reason)
        self.update_statistics(False)
        return False
