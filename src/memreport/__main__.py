import logging
import sys
from pathlib import Path

from memreport.common import RenderMode
from memreport.console_renderer import (
    print_growth_summary,
    print_report_collection,
    print_snapshot_listing,
)
from memreport.growth import analyze_growth
from memreport.parser_cli import build_argument_parser
from memreport.parser_memreport import parse_memreport_files

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def find_memreport_files(input_dir: Path, pattern: str) -> list[Path]:
    return sorted(p for p in input_dir.glob(pattern) if p.is_file())


def main(argv: list[str] | None = None) -> int:
    arg_parser = build_argument_parser()
    args = arg_parser.parse_args(argv)

    if not args.input_dir or not args.pattern:
        arg_parser.print_help()
        return 0

    _configure_logging(args.verbose, args.debug)

    input_dir: Path = args.input_dir
    if not input_dir.is_dir():
        logger.critical(f"input directory '{input_dir}' does not exist")
        return 1

    files = find_memreport_files(input_dir, args.pattern)
    if not files:
        logger.warning(f"no memreport files matching '{args.pattern}' in '{input_dir}'")

    collection, summaries = parse_memreport_files(files)

    if args.verbose:
        print_snapshot_listing(summaries)

    mode = RenderMode.from_name(args.stat_type)
    print_report_collection(collection, mode, args.output_format)

    if args.growth_method:
        threshold = args.step_fit_threshold if args.growth_method == "stepfit" else args.pvalue_threshold
        results = analyze_growth(collection, args.growth_method, threshold)
        print_growth_summary(results, args.growth_method)

    return 0


if __name__ == "__main__":
    sys.exit(main())
