"""Argument parsing functionality for RestorePad."""

import argparse
from typing import List, Optional


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="restorepad",
        description=(
            "RestorePad - search NuGet sources and restore package references for a scratch project"
        ),
        add_help=True,
    )
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--root",
                        dest="ROOT",
                        help="Directory where NuGet.Config discovery starts (default: current directory)",
                        action="store",
                        type=str)

    subparsers = parser.add_subparsers(dest="COMMAND", required=True)

    search = subparsers.add_parser("search", help="Search the configured package sources")
    search.add_argument("TERM", help="Search text")
    search.add_argument("--prerelease",
                        dest="PRERELEASE",
                        help="Include prerelease versions",
                        action="store_true")
    search.add_argument("--exact",
                        dest="EXACT",
                        help="Only return the package whose id equals the search text",
                        action="store_true")

    restore = subparsers.add_parser("restore", help="Restore package references and print artifact paths")
    restore.add_argument("--framework",
                         dest="FRAMEWORK",
                         help="Target framework moniker, e.g. net8.0 (overrides the references file)",
                         action="store",
                         type=str)
    input_group = restore.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-p", "--package",
                             dest="PACKAGES",
                             help="Package reference as ID@RANGE, e.g. Newtonsoft.Json@13.0.1 (repeatable)",
                             action="append",
                             type=str)
    input_group.add_argument("-f", "--file",
                             dest="REFERENCES_FILE",
                             help="YAML file with 'framework' and 'packages' keys",
                             action="store",
                             type=str)
    restore.add_argument("--dotnet",
                         dest="DOTNET",
                         help="Path to the dotnet executable",
                         action="store",
                         type=str,
                         default="dotnet")
    restore.add_argument("--build-root",
                         dest="BUILD_ROOT",
                         help="Directory under which the scratch project is created (default: system temp)",
                         action="store",
                         type=str)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
