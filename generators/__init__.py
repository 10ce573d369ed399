"""
Layer Generators Package
========================

This package turns a coverage index into a MITRE ATT&CK Navigator layer and
writes it to disk.

Available Generators:
- NavigatorLayerGenerator: Builds the coverage layer for a run
"""

from .layer_generator import (
    NavigatorLayerGenerator,
    LayerWriteError,
    resolve_output_path,
    write_layer
)

__all__ = [
    'NavigatorLayerGenerator',
    'LayerWriteError',
    'resolve_output_path',
    'write_layer'
]
