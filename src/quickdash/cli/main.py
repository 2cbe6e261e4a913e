from __future__ import annotations

import argparse
import sys
from typing import Sequence

from quickdash.config.settings import get_settings
from quickdash.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quickdash", description="quickdash CLI")
    parser.add_argument("--log-level", help="Log level (default from QUICKDASH_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Execute a dashboard and print panel results")
    run_parser.add_argument("dashboard_file", help="Path to dashboard YAML/JSON file")
    run_parser.add_argument(
        "--var",
        dest="variables",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Template variable (repeatable)",
    )
    run_parser.add_argument("--prometheus-url", help="Prometheus base URL")
    run_parser.add_argument(
        "--max-concurrency", type=int, help="Maximum concurrent queries per batch"
    )
    run_parser.add_argument(
        "--stream", action="store_true", help="Print each panel as soon as it is computed"
    )
    run_parser.add_argument(
        "--format",
        dest="output_format",
        choices=["text", "json"],
        default="text",
        help="Output format",
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Check a dashboard for unknown identifiers and other mistakes"
    )
    validate_parser.add_argument("dashboard_file", help="Path to dashboard YAML/JSON file")
    validate_parser.add_argument(
        "--var",
        dest="variables",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Template variable (repeatable)",
    )

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)

    if args.command == "run":
        from quickdash.cli.run import run_command

        if args.max_concurrency is not None and args.max_concurrency < 1:
            parser.error("--max-concurrency must be at least 1")

        sys.exit(
            run_command(
                args.dashboard_file,
                variables=args.variables,
                prometheus_url=args.prometheus_url,
                max_concurrency=args.max_concurrency,
                stream=args.stream,
                output_format=args.output_format,
            )
        )

    if args.command == "validate":
        from quickdash.cli.validate import validate_command

        sys.exit(validate_command(args.dashboard_file, variables=args.variables))

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
