"""
Coverage Index and Aggregation
==============================

The coverage index maps each technique ID to the ordered list of rule
associations that reference it: rule file names on the Sigma path, and
``"<sid> - <msg>"`` descriptors on the Suricata path. A technique's score is
simply the number of associations in its list, so duplicates are kept.

The aggregator folds per-file indexes into the run-wide index and computes the
gradient ceiling the layer generator uses to scale colors.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Tuple

from config import (
    CEILING_MAX_SCORE,
    CEILING_TECHNIQUE_COUNT,
    GRADIENT_CEILINGS
)

logger = logging.getLogger(__name__)


class CoverageIndex:
    """
    Append-only mapping of technique ID -> ordered association descriptors.

    Techniques keep the order in which they were first seen; each technique's
    descriptors keep scan order.

    Attributes:
        max_distinct_techniques: Highest number of distinct techniques the
            index has held at any point (the running GradientMax)
    """

    def __init__(self):
        self._entries: Dict[str, List[str]] = {}
        self.max_distinct_techniques = 0

    def add(self, technique_id: str, descriptor: str) -> None:
        """Record one association between a technique and a rule."""
        self._entries.setdefault(technique_id, []).append(descriptor)
        if len(self._entries) > self.max_distinct_techniques:
            self.max_distinct_techniques = len(self._entries)

    def extend(self, technique_id: str, descriptors: Iterable[str]) -> None:
        for descriptor in descriptors:
            self.add(technique_id, descriptor)

    def merge(self, other: "CoverageIndex") -> None:
        """Append every association of other, preserving its order."""
        for technique_id, descriptors in other.items():
            self.extend(technique_id, descriptors)

    def descriptors(self, technique_id: str) -> List[str]:
        return list(self._entries.get(technique_id, []))

    def score(self, technique_id: str) -> int:
        return len(self._entries.get(technique_id, []))

    def scores(self) -> Dict[str, int]:
        return {technique_id: len(descriptors) for technique_id, descriptors in self._entries.items()}

    def max_score(self) -> int:
        return max((len(descriptors) for descriptors in self._entries.values()), default=0)

    @property
    def techniques(self) -> List[str]:
        return list(self._entries)

    @property
    def total_associations(self) -> int:
        return sum(len(descriptors) for descriptors in self._entries.values())

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for technique_id, descriptors in self._entries.items():
            yield technique_id, list(descriptors)

    def __contains__(self, technique_id: object) -> bool:
        return technique_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __str__(self) -> str:
        return f"CoverageIndex(techniques={len(self._entries)}, associations={self.total_associations})"


class CoverageAggregator:
    """
    Folds per-file coverage contributions and derives layer scoring inputs.

    Two gradient ceilings are supported:

    - ``max-score``: the highest score of any technique
    - ``technique-count``: the running maximum of distinct techniques seen
    """

    def __init__(self, ceiling: str = CEILING_MAX_SCORE):
        if ceiling not in GRADIENT_CEILINGS:
            raise ValueError(f"Unknown gradient ceiling '{ceiling}'. Expected one of {GRADIENT_CEILINGS}")
        self.ceiling = ceiling

    @staticmethod
    def fold(contributions: Iterable[CoverageIndex]) -> CoverageIndex:
        """
        Merge per-file contributions, in order, into a new run-wide index.

        Args:
            contributions: Per-file indexes in scan order

        Returns:
            CoverageIndex: The combined index
        """
        combined = CoverageIndex()
        count = 0
        for contribution in contributions:
            combined.merge(contribution)
            count += 1
        logger.debug(f"Folded {count} coverage contributions into {combined}")
        return combined

    def gradient_ceiling(self, index: CoverageIndex) -> int:
        """
        Compute the gradient maxValue for the given index.

        Returns:
            int: Ceiling according to the configured strategy (0 for an empty index)
        """
        if self.ceiling == CEILING_TECHNIQUE_COUNT:
            return index.max_distinct_techniques
        return index.max_score()
