import argparse
from pathlib import Path

from memreport.console_renderer import OUTPUT_FORMATS
from memreport.growth import (
    DEFAULT_P_VALUE_THRESHOLD,
    DEFAULT_STEP_FIT_THRESHOLD,
    GROWTH_METHODS,
)

DEFAULT_STAT_TYPE: str = "value"

DESCRIPTION = """\
Parse UE4 MemReport files to see memory usage over time. For instance do a
MemReport on the Main Menu, load a level, go back to the Main Menu and do
another MemReport. Repeat as many times as you like. You can then spot any
memory usage increase which would indicate a memory or resource leak.
"""


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="memreport",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Required, but checked by main() so a missing value prints the usage instead of failing
    parser.add_argument(
        "-i", "--input",
        dest="input_dir",
        type=Path,
        default=None,
        metavar="PATH",
        help="Directory to search for .memreport files, it should contain one or more of them",
    )
    parser.add_argument(
        "-p", "--pattern",
        dest="pattern",
        type=str,
        default=None,
        metavar="PATTERN",
        help="File pattern to search for, can contain wildcards (e.g. test-*.memreport)",
    )

    # Optional Arguments
    parser.add_argument(
        "-s", "--stat",
        dest="stat_type",
        type=str,
        default=DEFAULT_STAT_TYPE,
        metavar="TYPE",
        help=(
            "Type of statistic to output. value: the actual value, "
            "diff: the change in value from report to report, "
            "baseline: the change in value from the first report (default: %(default)s)"
        ),
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        type=str,
        choices=OUTPUT_FORMATS,
        default=OUTPUT_FORMATS[0],
        help=f"Output format. Options: {', '.join(OUTPUT_FORMATS)} (default: %(default)s)",
    )
    parser.add_argument(
        "--growth",
        dest="growth_method",
        type=str,
        choices=list(GROWTH_METHODS.keys()),
        default=None,
        metavar="METHOD",
        help=f"Also print subjects that grow across snapshots. Options: {', '.join(GROWTH_METHODS)}",
    )
    parser.add_argument(
        "--fit",
        dest="step_fit_threshold",
        type=float,
        default=DEFAULT_STEP_FIT_THRESHOLD,
        metavar="VALUE",
        help=f"Threshold for step fit growth analysis (Default: {DEFAULT_STEP_FIT_THRESHOLD:.3f})",
    )
    parser.add_argument(
        "--alpha",
        dest="pvalue_threshold",
        type=float,
        default=DEFAULT_P_VALUE_THRESHOLD,
        metavar="VALUE",
        help=f"P-value threshold for Mann-Whitney U-test growth analysis (Default: {DEFAULT_P_VALUE_THRESHOLD:.3f})",
    )
    parser.add_argument(
        "--verbose",
        dest="verbose",
        action="store_true",
        default=False,
        help="Print the parsed snapshots and log progress",
    )
    parser.add_argument(
        "--debug",
        dest="debug",
        action="store_true",
        default=False,
        help="Log section transitions and per file decode counts",
    )

    return parser


def parse_commandline_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_argument_parser().parse_args(argv)
