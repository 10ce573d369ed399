"""
Data Models Package
==================

This package contains the data classes shared across the analysis.

Available Models:
- RuleTag / TagKind: A classified Sigma rule tag
- MismatchFinding: A tactic tag the ATT&CK matrix does not list for a technique
- NavigatorLayer: A complete Navigator coverage layer
- TechniqueEntry: A single technique entry within a layer
- Gradient: The layer's score color gradient
"""

from .rule_tag_model import RuleTag, TagKind, TagTypeError
from .mismatch_finding_model import MismatchFinding
from .navigator_layer_model import NavigatorLayer, TechniqueEntry, Gradient

__all__ = [
    'RuleTag',
    'TagKind',
    'TagTypeError',
    'MismatchFinding',
    'NavigatorLayer',
    'TechniqueEntry',
    'Gradient'
]
