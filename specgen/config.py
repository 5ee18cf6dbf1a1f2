"""Run configuration parsed from the command line."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_OUTPUT_DIR = "generated"


@dataclass(frozen=True)
class CliConfig:
    """Options for one generation run.

    ``generate_todos_raw`` is kept as typed by the user; see
    ``output.resolve_generate_todos`` for how it is interpreted.
    ``color`` of None leaves terminal detection to rich.
    """

    entry_file_path: str
    output_directory: str = DEFAULT_OUTPUT_DIR
    output_module_name: str | None = None
    generate_todos_raw: str | None = None
    verbose: bool = False
    color: bool | None = None
