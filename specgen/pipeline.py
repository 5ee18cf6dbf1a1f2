"""The generation pipeline: read, decode, generate, report, write.

Stages run strictly in order. Any stage failure raises a SpecgenError and
nothing after it runs; in particular no file is written.
"""

from __future__ import annotations

import logging

from .codegen import generate, write_output
from .config import CliConfig
from .loader import read_document
from .normalize import normalize_and_decode
from .output import (
    ResolvedOutput,
    resolve_file_path,
    resolve_generate_todos,
    resolve_module_name,
)
from .reporter import Reporter

logger = logging.getLogger(__name__)


def run(config: CliConfig, reporter: Reporter) -> ResolvedOutput:
    """Generate one client module from ``config.entry_file_path``."""
    raw = read_document(config.entry_file_path)
    logger.debug("Read %d characters from %s", len(raw), config.entry_file_path)

    spec = normalize_and_decode(raw)
    logger.debug("Decoded %r (OpenAPI %s)", spec.info.title, spec.openapi)

    module_name = resolve_module_name(config, spec)
    artifact = generate(module_name, resolve_generate_todos(config), spec)

    for warning in artifact.warnings:
        reporter.warning(warning)

    file_path = resolve_file_path(config, module_name)
    write_output(file_path, artifact.contents)
    logger.debug("Wrote %s", file_path)

    reporter.success(file_path)
    return ResolvedOutput(module_name, file_path)
