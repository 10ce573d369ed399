"""
Navigator Layer Generator
========================

This module turns the run-wide coverage index into a MITRE ATT&CK Navigator
layer and writes it to disk.

Every technique in the index becomes one layer entry, in first-seen order:
its score is the number of rule associations, and its comment (when comments
are enabled) lists the associated rules one per line. The gradient ceiling is
supplied by the CoverageAggregator.
"""

import json
import logging
import os
from typing import Optional

from config import (
    DEFAULT_OUTPUT_FILES,
    ENCODING,
    LAYER_NAMES,
    OUTPUT_EXTENSION,
    RULE_FORMATS
)
from core.coverage import CoverageAggregator, CoverageIndex
from models.navigator_layer_model import Gradient, NavigatorLayer
from validators.security_validator import SecurityValidator

logger = logging.getLogger(__name__)


class LayerWriteError(IOError):
    """Raised when the layer document cannot be written."""


def resolve_output_path(out_file: Optional[str], rule_format: str) -> str:
    """
    Pick the file the layer is written to.

    The format's default name is used when no path is given, or when the
    given path does not end in ``.json``.

    Args:
        out_file: Path requested on the command line, if any
        rule_format: "sigma" or "suricata"

    Returns:
        str: Output path
    """
    default_file = DEFAULT_OUTPUT_FILES[rule_format]
    if not out_file:
        return default_file
    if not out_file.lower().endswith(OUTPUT_EXTENSION):
        logger.warning(f"Output file '{out_file}' is not a {OUTPUT_EXTENSION} file, "
                       f"writing to {default_file} instead")
        return default_file
    return out_file


def write_layer(layer: NavigatorLayer, output_path: str) -> None:
    """
    Serialize a layer to JSON.

    Raises:
        LayerWriteError: If the path is unusable or the write fails
    """
    is_valid, error_msg = SecurityValidator.validate_output_path(output_path)
    if not is_valid:
        raise LayerWriteError(f"Cannot write {output_path}: {error_msg}")

    try:
        with open(output_path, 'w', encoding=ENCODING) as f:
            json.dump(layer.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise LayerWriteError(f"Cannot write {output_path}: {e.strerror or str(e)}") from e

    file_size = os.path.getsize(output_path)
    logger.info(f"Layer written to {output_path} ({file_size:,} bytes)")


class NavigatorLayerGenerator:
    """
    Builds coverage layers from a CoverageIndex.

    Attributes:
        aggregator: Supplies the gradient ceiling
        include_comments: Whether entries carry the rule list as a comment
    """

    def __init__(self, aggregator: Optional[CoverageAggregator] = None,
                 include_comments: bool = True):
        self.aggregator = aggregator or CoverageAggregator()
        self.include_comments = include_comments

        logger.debug(f"Navigator layer generator initialized "
                     f"(ceiling={self.aggregator.ceiling}, comments={include_comments})")

    def generate_layer(self, index: CoverageIndex, rule_format: str) -> NavigatorLayer:
        """
        Generate the coverage layer for one run.

        Args:
            index: Run-wide coverage index
            rule_format: "sigma" or "suricata", selects the layer name

        Returns:
            NavigatorLayer: Layer ready for export

        Raises:
            ValueError: If the rule format is unknown
        """
        if rule_format not in RULE_FORMATS:
            raise ValueError(f"Unknown rule format '{rule_format}'. Expected one of {RULE_FORMATS}")

        ceiling = self.aggregator.gradient_ceiling(index)
        layer = NavigatorLayer(
            name=LAYER_NAMES[rule_format],
            gradient=Gradient(max_value=ceiling)
        )

        for technique_id, descriptors in index.items():
            comment = "\n".join(descriptors) if self.include_comments else None
            layer.add_technique(technique_id, len(descriptors), comment)

        if not layer.techniques:
            logger.warning("No ATT&CK techniques found - the layer will be empty")

        logger.info(f"Generated '{layer.name}' with {layer.get_technique_count()} techniques "
                    f"(gradient maxValue={ceiling})")
        return layer

    def __str__(self) -> str:
        comment_status = "with comments" if self.include_comments else "without comments"
        return f"NavigatorLayerGenerator({self.aggregator.ceiling}, {comment_status})"
