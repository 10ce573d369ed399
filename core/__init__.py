"""
Core Components Package
======================

This package contains the coverage bookkeeping and the tag analysis that sit
between the rule parsers and the layer generator.

Available Components:
- CoverageIndex: Technique -> rule associations, in scan order
- CoverageAggregator: Folds per-file contributions, computes the gradient ceiling
- ScanState: Run-wide accumulators shared by the parsers
- TagSequenceAnalyzer: Attributes Sigma tactic tags to the technique that follows

RuleRepository lives in core.rule_repository and is imported from there; it
depends on the parsers package, which itself depends on this one.
"""

from .coverage import CoverageIndex, CoverageAggregator
from .scan_state import ScanState, rule_file_name
from .tag_analyzer import TagSequenceAnalyzer

__all__ = [
    'CoverageIndex',
    'CoverageAggregator',
    'ScanState',
    'rule_file_name',
    'TagSequenceAnalyzer'
]
