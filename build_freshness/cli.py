"""
Command-line interface for the build freshness tool.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .analyzer import FreshnessAnalyzer
from .models import DEFAULT_NAMESPACE, STATUS_STALE, AnalysisOptions
from .reporting import (
    build_json_report,
    export_csv,
    export_worksheets,
    format_markdown,
    format_table,
    format_tree,
    save_report_json,
)

EXIT_FRESH = 0
EXIT_STALE = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="build-freshness",
        description="Detect stale package builds in a multi-package workspace",
    )

    parser.add_argument(
        "--root",
        default=".",
        help="Workspace root containing */packages/* folders. Default: current directory"
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="Output a JSON report")
    output.add_argument("--md", action="store_true", help="Output a Markdown report")
    output.add_argument("--tree", action="store_true", help="Show the dependency tree view")

    parser.add_argument(
        "--package",
        default=None,
        help="Analyze a single package directory (tree view: package name substring)"
    )

    parser.add_argument(
        "--only-stale",
        action="store_true",
        help="Show only stale and never-built packages"
    )

    parser.add_argument(
        "--high-impact",
        type=int,
        default=None,
        help="Show packages affecting N or more others"
    )

    parser.add_argument(
        "--age-days",
        type=float,
        default=None,
        help="Report packages not built in N or more days"
    )

    parser.add_argument(
        "--suggest-rebuild",
        action="store_true",
        help="Always show the suggested rebuild order"
    )

    parser.add_argument(
        "--namespace",
        default=DEFAULT_NAMESPACE,
        help=f"Package name prefix identifying workspace packages. Default: {DEFAULT_NAMESPACE}"
    )

    parser.add_argument(
        "--project-prefix",
        default="",
        help="Only scan top-level directories starting with this prefix, "
             "for example kb-labs-. Default: scan every top-level directory"
    )

    parser.add_argument(
        "--no-dependency-check",
        action="store_true",
        help="Skip the check for dependencies rebuilt after a package"
    )

    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while collecting metadata"
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for exported reports (JSON, CSV, Excel)"
    )

    parser.add_argument(
        "--export-csv",
        action="store_true",
        help="Export the package table as CSV (requires --output-dir)"
    )

    parser.add_argument(
        "--export-worksheets",
        action="store_true",
        help="Export packages, issues and rebuild order to an Excel file (requires --output-dir)"
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: WARNING"
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.export_csv or args.export_worksheets) and not args.output_dir:
        parser.error("--output-dir is required for --export-csv and --export-worksheets")

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = AnalysisOptions(
        namespace=args.namespace,
        project_prefix=args.project_prefix,
        package_filter=None if args.tree else args.package,
        age_days=args.age_days,
        check_dependency_rebuilds=not args.no_dependency_check,
        show_progress=args.progress,
    )

    try:
        result = FreshnessAnalyzer(Path(args.root), options).analyze()

        if args.json:
            report = build_json_report(
                result,
                high_impact=args.high_impact,
                only_stale=args.only_stale,
                min_impact=args.high_impact,
            )
            print(json.dumps(report, indent=2, default=str))
        elif args.md:
            print(format_markdown(result, high_impact=args.high_impact))
        elif args.tree:
            print(format_tree(result, package=args.package))
        else:
            print(format_table(
                result,
                only_stale=args.only_stale,
                min_impact=args.high_impact,
                high_impact=args.high_impact,
                suggest_rebuild=args.suggest_rebuild,
            ))

        if args.output_dir:
            output_dir = Path(args.output_dir)
            report_file = save_report_json(build_json_report(result, high_impact=args.high_impact), output_dir)
            print(f"\nReport saved to: {report_file}", file=sys.stderr)
            if args.export_csv:
                print(f"CSV saved to: {export_csv(result, output_dir)}", file=sys.stderr)
            if args.export_worksheets:
                print(f"Worksheets saved to: {export_worksheets(result, output_dir)}", file=sys.stderr)

    except Exception as e:
        print(f"\nError during analysis: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(EXIT_ERROR)

    stale = sum(1 for r in result.results.values() if r.status == STATUS_STALE)
    sys.exit(EXIT_STALE if stale else EXIT_FRESH)


if __name__ == "__main__":
    main()
