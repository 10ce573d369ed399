"""
Navigator Layer Data Model
=========================

This module defines data structures for creating MITRE ATT&CK Navigator layers.
The Navigator is a web-based visualization tool that displays technique coverage
across the ATT&CK matrix, and it requires a specific JSON format.

This module takes the aggregated coverage index and converts it into the layer
document the Navigator imports. Fields without a value are left out of the
document entirely rather than written as null.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from config import (
    LAYER_DOMAIN,
    LAYER_VERSION,
    GRADIENT_COLORS,
    GRADIENT_MIN_VALUE
)


@dataclass
class TechniqueEntry:
    """
    Represents a single technique entry in a Navigator layer.

    Attributes:
        technique_id: MITRE ATT&CK technique ID (e.g., "T1055")
        score: Number of rule associations for this technique
        comment: Tooltip text (rule names), or None when comments are disabled
    """

    technique_id: str
    score: int = 0
    comment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this technique entry to Navigator-compatible dictionary format.

        Returns:
            Dict[str, Any]: Navigator-compatible technique entry
        """
        entry = {
            "techniqueID": self.technique_id,
            "score": self.score,
        }
        if self.comment is not None:
            entry["comment"] = self.comment
        return entry


@dataclass
class Gradient:
    """
    Color gradient used by the Navigator to shade scored techniques.

    Attributes:
        max_value: Score mapped to the darkest color
        min_value: Score mapped to the lightest color
        colors: Gradient color stops
    """

    max_value: int
    min_value: int = GRADIENT_MIN_VALUE
    colors: List[str] = field(default_factory=lambda: list(GRADIENT_COLORS))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "colors": list(self.colors),
            "maxValue": self.max_value,
            "minValue": self.min_value
        }


@dataclass
class NavigatorLayer:
    """
    Complete representation of a MITRE ATT&CK Navigator coverage layer.

    You create a layer object, add technique entries in scan order, and finally
    export it to the Navigator format with to_dict().

    Attributes:
        name: Human-readable name for this layer
        gradient: Score gradient for the visualization
        domain: ATT&CK domain identifier
        version: Layer format version
        techniques: List of technique entries in this layer
    """

    name: str
    gradient: Gradient
    domain: str = LAYER_DOMAIN
    version: str = LAYER_VERSION
    techniques: List[TechniqueEntry] = field(default_factory=list)

    def add_technique_entry(self, technique_entry: TechniqueEntry) -> None:
        self.techniques.append(technique_entry)

    def add_technique(self, technique_id: str, score: int,
                      comment: Optional[str] = None) -> TechniqueEntry:
        """
        Add a technique and return the created entry.

        Args:
            technique_id: MITRE ATT&CK technique ID
            score: Number of rule associations
            comment: Tooltip text, or None to leave the field out

        Returns:
            TechniqueEntry: The created technique entry
        """
        entry = TechniqueEntry(technique_id=technique_id, score=score, comment=comment)
        self.add_technique_entry(entry)
        return entry

    def get_technique_count(self) -> int:
        return len(self.techniques)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this layer to Navigator-compatible JSON format.

        Returns:
            Dict[str, Any]: Complete Navigator layer in the expected format
        """
        return {
            "domain": self.domain,
            "name": self.name,
            "gradient": self.gradient.to_dict(),
            "version": self.version,
            "techniques": [t.to_dict() for t in self.techniques]
        }

    def __str__(self) -> str:
        return f"NavigatorLayer(name='{self.name}', techniques={len(self.techniques)}, domain={self.domain})"
