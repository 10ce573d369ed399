#!/usr/bin/env python3
"""
S2AN - Detection Rules to ATT&CK Navigator
==========================================

Command line entry point. Scans a directory of Sigma or Suricata rules,
builds a MITRE ATT&CK Navigator coverage layer from their technique
references and, for Sigma rules, optionally reports tactic tags that do not
match the technique they precede.

Usage Examples:
    # Sigma coverage layer
    s2an -d /path/to/sigma/rules -o sigma-coverage.json

    # Sigma coverage with technique/tactic mismatch warnings
    s2an -d /path/to/sigma/rules -w

    # Suricata coverage layer without comments
    s2an -d /path/to/suricata/rules -s -n

Diagnostics are written to stderr; the summary line and the mismatch report
are written to stdout.
"""

import argparse
import logging
import sys
import traceback
from datetime import datetime
from typing import List, Optional

import config
from core.coverage import CoverageAggregator
from core.rule_repository import RuleRepository
from core.scan_state import ScanState
from generators.layer_generator import (
    LayerWriteError,
    NavigatorLayerGenerator,
    resolve_output_path,
    write_layer
)
from validators.mitre_validator import (
    MatrixFetchError,
    MatrixLookupError,
    ReferenceMatrix,
    ReferenceMatrixLoader
)
from utils import setup_logging, log_function_timing

logger = logging.getLogger(__name__)


class CoverageSession:
    """
    Manages one scan-and-write run from start to finish.

    Attributes:
        args: Parsed command line arguments
        reference_matrix: Loaded matrix when mismatch checking is active
        repository: Rule repository owning the scan state
        output_path: File the layer is written to
    """

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.start_time = datetime.now()
        self.reference_matrix: Optional[ReferenceMatrix] = None
        self.repository: Optional[RuleRepository] = None
        self.output_path = resolve_output_path(args.out_file, args.rule_format)

        logger.debug(f"Coverage session initialized at {self.start_time}")

    @property
    def check_mismatches(self) -> bool:
        return self.reference_matrix is not None

    @log_function_timing
    def run(self) -> int:
        """
        Execute the complete workflow.

        Returns:
            int: Exit code (0 for success, non-zero for error)

        Raises:
            MatrixLookupError: If the reference matrix holds an unattributed
                technique record (raised before any rule is scanned)
        """
        logger.info(f"Starting {self.args.rule_format} coverage analysis of {self.args.rules_directory}")

        # Phase 1: reference matrix, only needed for Sigma mismatch checking
        if self.args.warning and self.args.rule_format == config.RULE_FORMAT_SIGMA:
            self.reference_matrix = self._load_reference_matrix()

        # Phase 2: discover and scan rules
        self.repository = RuleRepository(
            rule_format=self.args.rule_format,
            reference_matrix=self.reference_matrix,
            check_mismatches=self.check_mismatches
        )
        rule_files = self.repository.discover_rules(self.args.rules_directory)
        if not rule_files:
            logger.warning(f"No {self.args.rule_format} rule files found in {self.args.rules_directory}")
        state = self.repository.scan_rules(rule_files)

        # Phase 3: build and write the layer
        generator = NavigatorLayerGenerator(
            aggregator=CoverageAggregator(self.args.gradient_ceiling),
            include_comments=not self.args.no_comment
        )
        layer = generator.generate_layer(state.index, self.args.rule_format)

        try:
            write_layer(layer, self.output_path)
        except LayerWriteError as e:
            logger.error(f"Failed to write layer file: {str(e)}")
            self._display_findings(state)
            return 1

        # Phase 4: report
        self._display_summary(state)
        logger.info(f"Analysis completed in {(datetime.now() - self.start_time).total_seconds():.1f}s")
        return 0

    def _load_reference_matrix(self) -> Optional[ReferenceMatrix]:
        """
        Load the matrix used for mismatch checking.

        A matrix that cannot be retrieved disables mismatch checking rather
        than the run; an unattributed record is fatal.
        """
        loader = ReferenceMatrixLoader(self.args.category_url)
        try:
            return loader.load(skip_unattributed=self.args.skip_unattributed)
        except MatrixFetchError as e:
            logger.warning(f"{str(e)} - continuing without mismatch checking")
            return None

    def _display_summary(self, state: ScanState) -> None:
        if self.args.rule_format == config.RULE_FORMAT_SURICATA:
            print(f"[*] Layer file written in {self.output_path} ({len(state.index)} techniques covered)")
        else:
            print(f"[*] Layer file written in {self.output_path} ({state.rules_with_tags} rules)")

        self._display_findings(state)

    @staticmethod
    def _display_findings(state: ScanState) -> None:
        if state.findings:
            print(config.MISMATCH_HEADER)
            for finding in state.findings:
                print(finding)


def setup_argument_parser() -> argparse.ArgumentParser:
    """
    Configure the command-line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="s2an",
        description=f"{config.APPLICATION_NAME} v{config.VERSION}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Sigma coverage layer
  s2an -d /path/to/sigma/rules -o sigma-coverage.json

  # Sigma coverage with technique/tactic mismatch warnings
  s2an -d /path/to/sigma/rules -w

  # Suricata coverage layer without comments
  s2an -d /path/to/suricata/rules -s -n

For more information and documentation:
{config.REPO_URL}
        """
    )
    parser.set_defaults(rule_format=config.RULE_FORMAT_SIGMA)

    required = parser.add_argument_group('Required Arguments')
    required.add_argument(
        "-d", "--rules-directory",
        type=str,
        required=True,
        help="Directory containing the detection rules (searched recursively)"
    )

    output_group = parser.add_argument_group('Output Options')
    output_group.add_argument(
        "-o", "--out-file",
        type=str,
        help=f"Layer file to write, must end in {config.OUTPUT_EXTENSION} "
             f"(default: {config.DEFAULT_OUTPUT_FILES[config.RULE_FORMAT_SIGMA]} or "
             f"{config.DEFAULT_OUTPUT_FILES[config.RULE_FORMAT_SURICATA]})"
    )
    output_group.add_argument(
        "-n", "--no-comment",
        action="store_true",
        help="Do not list the covering rules in each technique's comment"
    )
    output_group.add_argument(
        "--gradient-ceiling",
        choices=list(config.GRADIENT_CEILINGS),
        default=config.DEFAULT_GRADIENT_CEILING,
        help=f"How the gradient maxValue is computed (default: {config.DEFAULT_GRADIENT_CEILING})"
    )

    format_group = parser.add_argument_group('Rule Format')
    format_group.add_argument(
        "-s", "--suricata",
        dest="rule_format",
        action="store_const",
        const=config.RULE_FORMAT_SURICATA,
        help="Scan Suricata .rules files instead of Sigma rules"
    )
    format_group.add_argument(
        "--format",
        dest="rule_format",
        choices=list(config.RULE_FORMATS),
        help=f"Rule format to scan (default: {config.RULE_FORMAT_SIGMA})"
    )

    validation = parser.add_argument_group('Mismatch Checking (Sigma)')
    validation.add_argument(
        "-w", "--warning",
        dest="warning",
        action="store_true",
        default=False,
        help="Report tactic tags that the ATT&CK matrix does not list for the following technique"
    )
    validation.add_argument(
        "--no-warning",
        dest="warning",
        action="store_false",
        help="Disable mismatch checking (default)"
    )
    validation.add_argument(
        "-c", "--category-url",
        type=str,
        default=config.MITRE_ATTACK_URL,
        help="URL or local path of the ATT&CK STIX bundle (default: MITRE CTI enterprise-attack.json)"
    )
    validation.add_argument(
        "--skip-unattributed",
        action="store_true",
        help="Skip technique records without a mitre-attack reference instead of aborting"
    )

    debug = parser.add_argument_group('Logging Options')
    debug.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity level (default: INFO)"
    )
    debug.add_argument(
        "--log-file",
        type=str,
        help="Path to save log output to file (in addition to stderr)"
    )
    debug.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress the banner and informational logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"{config.APPLICATION_NAME} v{config.VERSION}"
    )

    return parser


def validate_arguments(args: argparse.Namespace) -> None:
    """
    Check for argument combinations that cannot work.

    Raises:
        ValueError: If arguments are invalid
    """
    if not args.rules_directory.strip():
        raise ValueError("Rules directory must not be empty")

    if args.warning and args.rule_format == config.RULE_FORMAT_SURICATA:
        logger.warning("Mismatch checking only applies to Sigma rules - ignored for Suricata")

    if args.skip_unattributed and not args.warning:
        logger.debug("--skip-unattributed has no effect without --warning")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main application entry point.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        int: Exit code (0 for success, non-zero for error)
    """
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_level, args.log_file, enable_colors=True, quiet=args.quiet)

        if not args.quiet:
            print(config.get_banner())

        validate_arguments(args)

        session = CoverageSession(args)
        return session.run()

    except KeyboardInterrupt:
        print("\n\nAnalysis interrupted by user.", file=sys.stderr)
        return 130

    except MatrixLookupError as e:
        logger.error(f"Cannot build the ATT&CK reference matrix: {str(e)}")
        logger.error("Re-run with --skip-unattributed to ignore such records")
        return 1

    except ValueError as e:
        logger.error(str(e))
        return 1

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        logger.debug(f"Full traceback:\n{traceback.format_exc()}")
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
