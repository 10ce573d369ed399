"""
Rule Tag Data Model
===================

This module defines the RuleTag class, the parsed form of a single entry in a
Sigma rule's ``tags`` list.

Sigma rules mix several kinds of tags in one flat list: technique references
(``attack.t1059.001``), tactic references (``attack.execution``) and anything
else a rule author chose to add (``attack.g0032``, ``cve.2021.44228``). For
coverage purposes only two kinds matter:

- Technique tags: the tag starts with ``attack.t`` (case-insensitive)
- Category tags: everything else

Both kinds are normalized once, when the tag is parsed, so the rest of the
system can compare and index them without worrying about casing or the
``attack.`` namespace.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from config import ATTACK_NAMESPACE, TECHNIQUE_TAG_PREFIX

_NAMESPACE_PATTERN = re.compile(r'^' + re.escape(ATTACK_NAMESPACE), re.IGNORECASE)


class TagTypeError(TypeError):
    """Raised when a rule's tag list contains something other than a string."""

    def __init__(self, value: Any, source: str = ""):
        self.value = value
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Tag {value!r} is a {type(value).__name__}, expected a string{where}")


class TagKind(Enum):
    """Classification of a rule tag."""
    TECHNIQUE = "technique"
    CATEGORY = "category"


def strip_namespace(tag: str) -> str:
    """Remove a leading ``attack.`` namespace, ignoring case."""
    return _NAMESPACE_PATTERN.sub('', tag, count=1)


def normalize_technique_id(tag: str) -> str:
    """
    Normalize a technique tag or bare identifier to its TechniqueID form.

    Example:
        normalize_technique_id("attack.t1059.001")  # -> "T1059.001"
        normalize_technique_id("ATTACK.T1566")      # -> "T1566"
    """
    return strip_namespace(tag.strip()).upper()


def normalize_category(tag: str) -> str:
    """
    Normalize a category tag to the kill-chain phase naming used by ATT&CK.

    Example:
        normalize_category("attack.Initial_Access")  # -> "initial-access"
    """
    return strip_namespace(tag.strip()).replace('_', '-').lower()


def is_technique_tag(tag: str) -> bool:
    """Check whether a raw tag references a technique."""
    return tag.lower().startswith(TECHNIQUE_TAG_PREFIX)


@dataclass(frozen=True)
class RuleTag:
    """
    A single classified and normalized rule tag.

    Attributes:
        raw: The tag exactly as it appeared in the rule file
        kind: Whether the tag names a technique or a category
        value: The normalized TechniqueID or category name
    """

    raw: str
    kind: TagKind
    value: str

    @classmethod
    def parse(cls, raw: Any, source: str = "") -> "RuleTag":
        """
        Classify and normalize a raw tag value.

        Args:
            raw: Value taken from the rule's ``tags`` list
            source: Rule file the tag came from (used in error messages)

        Returns:
            RuleTag: The parsed tag

        Raises:
            TagTypeError: If the value is not a string (for example a YAML
                mapping or a number that slipped into the tag list)
        """
        if not isinstance(raw, str):
            raise TagTypeError(raw, source)

        if is_technique_tag(raw):
            return cls(raw=raw, kind=TagKind.TECHNIQUE, value=normalize_technique_id(raw))
        return cls(raw=raw, kind=TagKind.CATEGORY, value=normalize_category(raw))

    @property
    def is_technique(self) -> bool:
        return self.kind is TagKind.TECHNIQUE

    @property
    def is_category(self) -> bool:
        return self.kind is TagKind.CATEGORY

    def __str__(self) -> str:
        return self.value
