"""Entry point: python -m specgen [CONFIG] [BUNDLE]

Reads openapi.config.json and extraction.json from the working directory
by default, writes the configured output document.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from .codegen import generate
from .config import ConfigurationError, load_config
from .loader import InputError, load_bundle
from .pipeline import generate_document

DEFAULT_CONFIG = Path("openapi.config.json")
DEFAULT_BUNDLE = Path("extraction.json")


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=os.environ.get("SPECGEN_LOG_LEVEL", "INFO").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_path = Path(args[0]) if args else DEFAULT_CONFIG
    bundle_path = Path(args[1]) if len(args) > 1 else DEFAULT_BUNDLE
    try:
        config = load_config(config_path)
        bundle = load_bundle(bundle_path)
    except (ConfigurationError, InputError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    result = generate_document(bundle, config)
    print(generate(result, config.output, config.format), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
