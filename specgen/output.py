"""Resolve the generated module's name, its file path, and the TODO switch."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .config import CliConfig
from .naming import sanitize_module_name
from .spec import ApiSpecification

DEFAULT_MODULE_NAME = "Api"
FILE_EXTENSION = ".py"

GENERATE_TODOS_DEFAULT = "no"
_GENERATE_TODOS_ENABLED = {"y", "yes", "true"}


@dataclass(frozen=True)
class ResolvedOutput:
    module_name: str
    file_path: str


def resolve_module_name(config: CliConfig, spec: ApiSpecification) -> str:
    """Module name from --module-name, else from the API title, else 'Api'."""
    if config.output_module_name is not None:
        return config.output_module_name
    return sanitize_module_name(spec.info.title) or DEFAULT_MODULE_NAME


def resolve_file_path(config: CliConfig, module_name: str) -> str:
    """Map 'Foo.Bar' to '<output_dir>/Foo/Bar.py', relative to the working directory."""
    segments = module_name.split(".")
    joined = os.path.join(config.output_directory, *segments) + FILE_EXTENSION
    return os.path.relpath(os.path.normpath(joined))


def resolve_generate_todos(config: CliConfig) -> bool:
    """True when --generateTodos is y, yes or true (any case); defaults to "no"."""
    raw = config.generate_todos_raw
    if raw is None:
        raw = GENERATE_TODOS_DEFAULT
    return raw.lower() in _GENERATE_TODOS_ENABLED
