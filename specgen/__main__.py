"""Entry point: python -m specgen openapi.yaml

Reads the OpenAPI document, generates generated/<Module>.py.
"""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
