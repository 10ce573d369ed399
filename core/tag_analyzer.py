"""
Tag Sequence Analyzer
=====================

Sigma rules declare their ATT&CK mapping as a flat tag list, for example::

    tags:
      - attack.execution
      - attack.t1059.001
      - attack.persistence
      - attack.privilege_escalation
      - attack.t1543.003

Tactic (category) tags are attributed to the technique tag that follows them.
The analyzer walks the list once, keeps the categories seen since the previous
technique as the current category group, and on every technique tag:

1. records the (technique, rule file) association in the coverage index
2. optionally checks each category in the group against the reference matrix
3. clears the group

Categories that appear after the last technique are never attributed.
"""

import logging
from typing import Iterable, List, Optional

from core.scan_state import ScanState, rule_file_name
from models.mismatch_finding_model import MismatchFinding
from models.rule_tag_model import RuleTag
from validators.mitre_validator import ReferenceMatrix

logger = logging.getLogger(__name__)


class TagSequenceAnalyzer:
    """
    Attributes technique tags to rules and tactic tags to techniques.

    Attributes:
        reference_matrix: Technique -> tactics lookup (None when not checking)
        check_mismatches: Whether category groups are checked against the matrix
    """

    def __init__(self, reference_matrix: Optional[ReferenceMatrix] = None,
                 check_mismatches: bool = False):
        if check_mismatches and reference_matrix is None:
            raise ValueError("Mismatch checking requires a reference matrix")
        self.reference_matrix = reference_matrix
        self.check_mismatches = check_mismatches

    def analyze(self, tags: Iterable, source: str, state: ScanState,
                rule_title: Optional[str] = None) -> List[MismatchFinding]:
        """
        Process one rule's tag list.

        Every tag is parsed before the index is touched, so a rule with a
        malformed tag contributes nothing.

        Args:
            tags: The rule's raw tag list, in file order
            source: Path or name of the rule file
            state: Run-wide accumulators to update
            rule_title: Rule title, attached to any findings

        Returns:
            List[MismatchFinding]: Findings produced by this rule (they are also
            appended to state.findings)

        Raises:
            TagTypeError: If any tag is not a string
        """
        parsed_tags = [RuleTag.parse(tag, source) for tag in tags]
        descriptor = rule_file_name(source)

        findings: List[MismatchFinding] = []
        category_group: List[str] = []
        last_tag_was_technique = True

        for tag in parsed_tags:
            if tag.is_technique:
                state.index.add(tag.value, descriptor)

                if self.check_mismatches and category_group:
                    findings.extend(self._check_group(tag.value, category_group,
                                                      descriptor, rule_title))

                category_group = []
                last_tag_was_technique = True
            else:
                if last_tag_was_technique:
                    category_group = [tag.value]
                elif tag.value not in category_group:
                    category_group.append(tag.value)
                last_tag_was_technique = False

        if category_group and not last_tag_was_technique:
            logger.debug(f"Trailing categories {category_group} in {descriptor} follow no technique")

        state.findings.extend(findings)
        return findings

    def _check_group(self, technique_id: str, category_group: List[str],
                     descriptor: str, rule_title: Optional[str]) -> List[MismatchFinding]:
        findings = []
        for category in category_group:
            if not self.reference_matrix.knows(technique_id, category):
                finding = MismatchFinding(
                    technique_id=technique_id,
                    category=category,
                    source=descriptor,
                    rule_title=rule_title
                )
                logger.debug(str(finding))
                findings.append(finding)
        return findings
