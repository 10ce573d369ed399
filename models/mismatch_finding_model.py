"""
Mismatch Finding Data Model
===========================

A mismatch finding records a technique/tactic pairing declared by a rule that
the ATT&CK reference matrix does not confirm. Findings are collected across the
whole run and printed once scanning is complete.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MismatchFinding:
    """
    A technique/tactic pairing the reference matrix does not confirm.

    Attributes:
        technique_id: Normalized technique ID declared by the rule (e.g. "T1059")
        category: Normalized category tag that preceded the technique
        source: Descriptor of the rule (its file name)
        rule_title: Rule title, when the rule file declares one
    """

    technique_id: str
    category: str
    source: str
    rule_title: Optional[str] = None

    def as_triple(self):
        return (self.technique_id, self.category, self.source)

    def __str__(self) -> str:
        message = (f"MITRE ATT&CK technique ({self.technique_id}) and tactic "
                   f"({self.category}) mismatch in rule: {self.source}")
        if self.rule_title:
            message += f" ({self.rule_title})"
        return message
