"""
Rule Parsers Package
===================

This package contains the parsers for the supported detection rule formats.
Each parser implements the BaseRuleParser interface and records what it finds
in the run's ScanState.

Available Parsers:
- BaseRuleParser: Abstract base class defining the parser interface
- SigmaRuleParser: Parser for Sigma YAML rules (tag lists)
- SuricataRuleParser: Line scanner for Suricata rules (inline metadata)
"""

from .base_parser import BaseRuleParser
from .sigma_parser import SigmaRuleParser
from .suricata_parser import SuricataRuleParser, MalformedRuleLineError

__all__ = [
    'BaseRuleParser',
    'SigmaRuleParser',
    'SuricataRuleParser',
    'MalformedRuleLineError'
]
