"""Shared fixtures for specgen tests.

Fixture documents live in tests/fixtures/: the same Petstore API spelled
once as YAML and once as JSON.
"""

from __future__ import annotations

import importlib.util
import io
import sys
from pathlib import Path
from types import ModuleType
from typing import Callable

import pytest
from rich.console import Console

from specgen.normalize import normalize_and_decode
from specgen.reporter import Reporter
from specgen.spec import ApiSpecification

FIXTURES = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@pytest.fixture
def petstore_yaml() -> Path:
    return FIXTURES / "petstore.yaml"


@pytest.fixture
def petstore_json() -> Path:
    return FIXTURES / "petstore.json"


@pytest.fixture
def petstore_spec(petstore_yaml) -> ApiSpecification:
    return normalize_and_decode(petstore_yaml.read_text(encoding="utf-8"))


@pytest.fixture
def write_doc(tmp_path) -> Callable[[str, str], Path]:
    """Write a document into tmp_path and return its path."""
    def _write(text: str, name: str = "openapi.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


# ---------------------------------------------------------------------------
# Reporter with captured, uncolored output
# ---------------------------------------------------------------------------

class CapturingReporter(Reporter):
    def __init__(self) -> None:
        self.out_buffer = io.StringIO()
        self.err_buffer = io.StringIO()
        super().__init__(
            Console(file=self.out_buffer, no_color=True, highlight=False, soft_wrap=True),
            Console(file=self.err_buffer, no_color=True, highlight=False, soft_wrap=True),
        )

    @property
    def stdout(self) -> str:
        return self.out_buffer.getvalue()

    @property
    def stderr(self) -> str:
        return self.err_buffer.getvalue()


@pytest.fixture
def reporter() -> CapturingReporter:
    return CapturingReporter()


# ---------------------------------------------------------------------------
# Generated module loader
# ---------------------------------------------------------------------------

@pytest.fixture
def load_module(tmp_path) -> Callable[[str], ModuleType]:
    """Write generated source to disk and import it under a throwaway name."""
    loaded: list[str] = []

    def _load(source: str) -> ModuleType:
        name = f"specgen_generated_{len(loaded)}"
        path = tmp_path / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        loaded.append(name)
        return module

    yield _load
    for name in loaded:
        sys.modules.pop(name, None)
