"""Render templates and write generated output.

Takes the context from context_builder, renders templates/client.py.j2 and
returns the module source together with the generator warnings.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2

from .context_builder import build_context
from .errors import OutputWriteError
from .spec import ApiSpecification

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "client.py.j2"


@dataclass(frozen=True)
class GeneratedArtifact:
    contents: str
    warnings: tuple[str, ...] = ()


def _pyrepr(value: Any) -> str:
    """Python literal for a JSON scalar; strings are double-quoted."""
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return repr(value)


def _docstring(text: str) -> str:
    """Escape text for use inside a triple-quoted docstring."""
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text = text[:-1] + '\\"'
    return text


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["pyrepr"] = _pyrepr
    env.filters["docstring"] = _docstring
    return env


def generate(namespace: str, generate_todos: bool, spec: ApiSpecification) -> GeneratedArtifact:
    """Render the client module for ``spec`` under ``namespace``.

    Raises GenerationError when the document uses a feature the generator
    cannot express and ``generate_todos`` is off.
    """
    context = build_context(spec, namespace, generate_todos)
    template = _environment().get_template(TEMPLATE_NAME)
    output = template.render(**context)
    logger.debug(
        "Rendered %s (%d operations, %d models)",
        namespace, context["operation_count"], len(context["models"]),
    )
    return GeneratedArtifact(contents=output, warnings=tuple(context["warnings"]))


def write_output(path: str | Path, contents: str) -> None:
    """Write ``contents`` to ``path``, creating parent directories.

    The file is written next to its destination and moved into place, so a
    failed write never leaves a partial module behind.
    """
    output_path = Path(path)
    tmp_path = output_path.with_name(output_path.name + ".tmp")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(contents, encoding="utf-8")
        os.replace(tmp_path, output_path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            tmp_path.unlink(missing_ok=True)
        raise OutputWriteError(str(path), exc.strerror or str(exc)) from None
