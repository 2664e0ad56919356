"""dall-e package entrypoint.

main() resolves command-line options using dalle.options, requests images via
dalle.generation and writes them with dalle.outputs. Every failure is turned
into an exit status by run().
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from . import exif
from .env import load_environment, require_api_key
from .errors import ConfigurationError, MissingPromptError
from .generation import request_generation
from .options import RunConfig, build_parser, parse_args
from .outputs import save_images


def run(argv: Sequence[str], *, environ: Mapping[str, str] | None = None) -> int:
    """Run one invocation and return its exit status.

    -h/--help raises SystemExit(0) from the argument parser.
    """

    parser = build_parser()
    config = parse_args(argv, parser=parser)

    try:
        if not config.prompt:
            raise MissingPromptError("Prompt is required. Use -p or --prompt.")
        if environ is None:
            load_environment()
        api_key = require_api_key(environ)
        payload = request_generation(config, api_key)

        if config.emit_raw_json:
            print(json.dumps(payload, indent=2, ensure_ascii=False))

        saved = save_images(
            payload, config.output_dir, config.name_prefix, verbose=config.verbose
        )
    except MissingPromptError as exc:
        print(f"error: {exc}\n", file=sys.stderr)
        print(parser.format_help())
        return 1
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    for path in saved:
        if config.add_prompt_metadata:
            _apply_exif_metadata(path, config)
        print(f"Saved: {path}")
    return 0


def main() -> None:
    """CLI entrypoint: parse argv, request images, and persist them."""

    raise SystemExit(run(sys.argv[1:]))


def _apply_exif_metadata(path: Path, config: RunConfig) -> None:
    success = exif.set_prompt_metadata(path, prompt=config.prompt, model=config.model)
    if not success:
        print(f"warning: unable to update EXIF data for {path}", file=sys.stderr)


__all__ = ["ConfigurationError", "RunConfig", "main", "run"]
