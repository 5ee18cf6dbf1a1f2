"""Turn raw document text into an ApiSpecification.

YAML is treated as a superset of JSON: the text is parsed with the YAML
parser first and the result decoded from the canonical value. Only when the
YAML parse fails is the original text handed to the JSON decoder. The YAML
error itself is dropped; the caller sees the JSON decoder's verdict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import yaml

from .spec import ApiSpecification, decode_from_text, decode_from_value
from .value import Value, to_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedDocument:
    value: Value


@dataclass(frozen=True)
class UnparsedDocument:
    raw: str


def parse_document(raw: str) -> ParsedDocument | UnparsedDocument:
    """Parse ``raw`` as YAML, falling back to the untouched text."""
    try:
        tree = yaml.safe_load(raw)
    except yaml.YAMLError:
        logger.debug("YAML parse failed, deferring to the JSON decoder")
        return UnparsedDocument(raw)
    return ParsedDocument(to_value(tree))


def normalize_and_decode(raw: str) -> ApiSpecification:
    """Decode a YAML or JSON OpenAPI document.

    Raises SpecDecodeError with the message of whichever decoder ran.
    """
    document = parse_document(raw)
    if isinstance(document, ParsedDocument):
        return decode_from_value(document.value)
    return decode_from_text(document.raw)
