"""Command line interface: specgen ENTRY_FILE [options]."""

from __future__ import annotations

import argparse
import logging

from .config import DEFAULT_OUTPUT_DIR, CliConfig
from .errors import SpecgenError
from .pipeline import run
from .reporter import Reporter, make_console


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="specgen",
        description="Generate a Python client module from an OpenAPI document (YAML or JSON).",
    )
    parser.add_argument("entry_file_path", help="Path to the OpenAPI document")
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory the module is written under (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--module-name",
        help="Dotted module name, e.g. Acme.Billing (default: derived from the API title)",
    )
    parser.add_argument(
        "--generateTodos",
        "--generate-todos",
        dest="generate_todos",
        metavar="VALUE",
        help="y/yes/true to emit TODO stubs for unsupported features instead of failing",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each pipeline stage")
    return parser


def parse_config(argv: list[str] | None = None) -> CliConfig:
    args = build_parser().parse_args(argv)
    return CliConfig(
        entry_file_path=args.entry_file_path,
        output_directory=args.output_dir,
        output_module_name=args.module_name,
        generate_todos_raw=args.generate_todos,
        verbose=args.verbose,
        color=False if args.no_color else None,
    )


def main(argv: list[str] | None = None, reporter: Reporter | None = None) -> int:
    """Run the CLI and return the process exit code."""
    config = parse_config(argv)
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if reporter is None:
        reporter = Reporter(
            make_console(color=config.color),
            make_console(stderr=True, color=config.color),
        )

    try:
        run(config, reporter)
    except SpecgenError as exc:
        reporter.failure(str(exc))
        return 1
    return 0
