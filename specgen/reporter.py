"""User-facing diagnostics: warnings, the fatal error, and the success line.

Formatting is a pure function of (kind, message); the Reporter only decides
which console a message goes to. Color support is whatever the consoles
were built with, so tests can pass plain file-backed consoles.
"""

from __future__ import annotations

from typing import Literal

from rich.console import Console
from rich.text import Text

Kind = Literal["warning", "error", "success"]

_STYLES: dict[str, str] = {
    "warning": "bold yellow",
    "error": "bold red",
    "success": "green",
}


def format_diagnostic(kind: Kind, message: str) -> Text:
    """Render one diagnostic line."""
    if kind == "warning":
        return Text.assemble(("Warning:", _STYLES["warning"]), " ", message)
    return Text(message, style=_STYLES[kind])


def make_console(stderr: bool = False, color: bool | None = None) -> Console:
    """Console on stdout or stderr; ``color=None`` autodetects."""
    return Console(
        stderr=stderr,
        no_color=color is False,
        force_terminal=True if color else None,
        highlight=False,
        soft_wrap=True,
    )


class Reporter:
    """Writes diagnostics in the order they are reported."""

    def __init__(self, out: Console | None = None, err: Console | None = None) -> None:
        self.out = out or make_console()
        self.err = err or make_console(stderr=True)
        self.failed = False

    def warning(self, message: str) -> None:
        self.err.print(format_diagnostic("warning", message))

    def failure(self, message: str) -> None:
        self.failed = True
        self.err.print(format_diagnostic("error", message))

    def success(self, path: str) -> None:
        self.out.print(format_diagnostic("success", f"Generated {path}"))
