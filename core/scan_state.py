"""
Scan State
==========

All state accumulated during one run lives in a single ScanState object that
the repository owns and passes explicitly to the analyzer and scanner. Nothing
is kept in module globals, so two runs in the same process never share data.
"""

from dataclasses import dataclass, field
from pathlib import PureWindowsPath
from typing import List

from core.coverage import CoverageIndex
from models.mismatch_finding_model import MismatchFinding


def rule_file_name(file_path: str) -> str:
    """Return the bare file name used to identify a rule in layer comments."""
    # PureWindowsPath splits on both / and \ separators
    return PureWindowsPath(file_path).name


@dataclass
class ScanState:
    """
    Run-wide accumulators.

    Attributes:
        index: Technique -> rule associations for the whole run
        findings: Mismatch findings from every rule, in scan order
        files_scanned: Rule files handed to a parser
        rules_with_tags: Sigma rules that carried a tags list
        skipped_files: "<path>: <reason>" for every rule file that was skipped
        malformed_lines: Suricata lines that could not be parsed
    """

    index: CoverageIndex = field(default_factory=CoverageIndex)
    findings: List[MismatchFinding] = field(default_factory=list)
    files_scanned: int = 0
    rules_with_tags: int = 0
    skipped_files: List[str] = field(default_factory=list)
    malformed_lines: int = 0

    def record_skip(self, file_path: str, reason: str) -> None:
        self.skipped_files.append(f"{file_path}: {reason}")
