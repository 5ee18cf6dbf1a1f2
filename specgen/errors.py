"""Error types raised by the generation pipeline.

Every error carries one display-ready message: ``str(exc)`` is what the CLI
prints. There is no typed recovery path; the CLI reports the first error
and exits non-zero.
"""

from __future__ import annotations


class SpecgenError(Exception):
    """Base class for fatal pipeline errors."""


class InputAcquisitionError(SpecgenError):
    """The entry document could not be read."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class DocumentNotFoundError(InputAcquisitionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"File not found: {path}")


class DocumentReadError(InputAcquisitionError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, f"Could not read {path}: {reason}")


class DocumentEncodingError(InputAcquisitionError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, f"{path} is not valid UTF-8 text: {reason}")


class SpecDecodeError(SpecgenError):
    """The document is not an OpenAPI specification we can decode.

    ``location`` is the dotted path of the offending value, empty for
    problems with the document as a whole.
    """

    def __init__(self, message: str, location: str = "") -> None:
        text = f"Invalid OpenAPI document at {location}: {message}" if location else message
        super().__init__(text)
        self.location = location


class GenerationError(SpecgenError):
    """The code generator could not produce a module."""


class OutputWriteError(SpecgenError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not write {path}: {reason}")
        self.path = path


class UnsupportedFeature(Exception):
    """A specification feature the generator cannot express.

    Raised inside the generator; turned into either a GenerationError or a
    TODO stub plus warning, depending on ``generate_todos``.
    """
