"""
Suricata Rule Parser
====================

Suricata signatures carry their ATT&CK mapping inline, in the rule's metadata
keyword::

    alert http any any -> any any (msg:"ET EXPLOIT Possible Log4j RCE";
        ... metadata: mitre_technique_id T1190, mitre_tactic_id TA0001;
        sid:2034647; rev:2;)

Each rule sits on one line. The scanner extracts every technique referenced on
the line and credits all of them with a ``"<sid> - <msg>"`` descriptor. There
is no tactic grouping on this path.

A line that mentions a technique but whose sid or msg cannot be extracted is
reported and skipped; the rest of the file is still scanned.
"""

import logging
from typing import List, NamedTuple, Optional, Set

from config import (
    SURICATA_EXTENSIONS,
    SURICATA_FIELD_TERMINATORS,
    SURICATA_MSG_MARKER,
    SURICATA_SID_MARKER,
    SURICATA_TECHNIQUE_MARKER
)
from core.coverage import CoverageIndex
from core.scan_state import ScanState
from models.rule_tag_model import normalize_technique_id
from parsers.base_parser import BaseRuleParser
from validators.security_validator import SecurityValidator

logger = logging.getLogger(__name__)


class MalformedRuleLineError(ValueError):
    """Raised when a line references a technique but its sid or msg is unusable."""


class InlineReference(NamedTuple):
    """ATT&CK references extracted from one Suricata rule line."""
    technique_ids: List[str]
    sid: str
    msg: str

    @property
    def descriptor(self) -> str:
        return f"{self.sid} - {self.msg}"


def _find_terminator(line: str, start: int) -> int:
    positions = [line.find(t, start) for t in SURICATA_FIELD_TERMINATORS]
    positions = [p for p in positions if p != -1]
    return min(positions) if positions else -1


def _extract_field(line: str, marker: str, start: int = 0) -> str:
    """Return the text after marker up to the next ',' or ';'."""
    head = line.find(marker, start)
    if head == -1:
        raise MalformedRuleLineError(f"'{marker}' not found")
    head += len(marker)
    tail = _find_terminator(line, head)
    if tail == -1:
        raise MalformedRuleLineError(f"no ',' or ';' after '{marker}'")
    value = line[head:tail].strip()
    if not value:
        raise MalformedRuleLineError(f"empty value after '{marker}'")
    return value


def _extract_msg(line: str) -> str:
    head = line.find(SURICATA_MSG_MARKER)
    if head == -1:
        raise MalformedRuleLineError(f"'{SURICATA_MSG_MARKER}' not found")
    head += len(SURICATA_MSG_MARKER)
    tail = line.find('"', head)
    if tail == -1:
        raise MalformedRuleLineError("unterminated msg")
    return line[head:tail]


def scan_line(line: str) -> InlineReference:
    """
    Extract technique IDs, sid and msg from a candidate rule line.

    Example:
        scan_line('... mitre_technique_id T1059, mitre_technique_id T1566; '
                  'sid:1000001; msg:"test alert";')
        # -> InlineReference(['T1059', 'T1566'], '1000001', 'test alert')

    Raises:
        MalformedRuleLineError: If any reference, the sid or the msg cannot be
            extracted
    """
    technique_ids = []
    position = line.find(SURICATA_TECHNIQUE_MARKER)
    while position != -1:
        technique_ids.append(normalize_technique_id(
            _extract_field(line, SURICATA_TECHNIQUE_MARKER, position)
        ))
        position = line.find(SURICATA_TECHNIQUE_MARKER, position + len(SURICATA_TECHNIQUE_MARKER))

    sid = _extract_field(line, SURICATA_SID_MARKER)
    msg = _extract_msg(line)
    return InlineReference(technique_ids, sid, msg)


def is_candidate_line(line: str) -> bool:
    return SURICATA_TECHNIQUE_MARKER in line


class SuricataRuleParser(BaseRuleParser):
    """
    Line-oriented scanner for Suricata ``.rules`` files.

    Each file produces its own CoverageIndex contribution; the repository
    folds contributions into the run-wide index.
    """

    def __init__(self):
        super().__init__("Suricata")

    def get_supported_extensions(self) -> Set[str]:
        return set(SURICATA_EXTENSIONS)

    def scan_text(self, text: str, source: str = "<text>",
                  state: Optional[ScanState] = None) -> CoverageIndex:
        """
        Scan rule text line by line.

        Args:
            text: Full content of a rules file
            source: Name used in diagnostics
            state: Optional run state whose malformed line counter is updated

        Returns:
            CoverageIndex: Technique -> "<sid> - <msg>" descriptors for this text
        """
        contribution = CoverageIndex()

        for line_number, line in enumerate(text.split("\n"), 1):
            line = line.rstrip("\r")
            if not is_candidate_line(line):
                continue

            try:
                reference = scan_line(line)
            except MalformedRuleLineError as e:
                logger.warning(f"Skipping malformed rule line {source}:{line_number} ({str(e)}): "
                               f"{SecurityValidator.is_safe_for_logging(line)}")
                if state is not None:
                    state.malformed_lines += 1
                continue

            for technique_id in reference.technique_ids:
                contribution.add(technique_id, reference.descriptor)

        return contribution

    def parse_file(self, file_path: str, state: ScanState) -> CoverageIndex:
        """
        Scan one rules file into its own contribution.

        Returns:
            CoverageIndex: The file's contribution (empty if unreadable)
        """
        logger.debug(f"Scanning Suricata rules: {file_path}")

        content = self.safe_file_read(file_path)
        if content is None:
            logger.warning(f"Ignoring rules file {file_path} (unreadable)")
            state.record_skip(file_path, "unreadable")
            self.update_statistics(False)
            return CoverageIndex()

        contribution = self.scan_text(content, file_path, state)
        self.update_statistics(True, contribution.total_associations)
        return contribution

    def parse(self, file_path: str, state: ScanState) -> bool:
        contribution = self.parse_file(file_path, state)
        state.index.merge(contribution)
        return bool(contribution)
