"""Command-line options parser for dall-e.

This module builds and parses command-line options for the dall-e CLI.

Usage:
- build_parser() -> argparse.ArgumentParser
- parse_args(argv, parser=None) -> RunConfig

Rules enforced:
- Unknown flags, malformed spellings of known flags (--json=1, -verbose, -ax)
  and stray positional tokens are ignored.
- A value flag always consumes the next token, even one starting with '-'.
- A value flag given without a value (or with an empty one) keeps its default.
- -n/--count keeps the previous value when given something that is not a
  finite, positive whole number. Repeated flags apply in order.
- -h/--help prints usage and exits with status 0.
- A missing prompt is not rejected here; the caller decides (see dalle.run).
"""

from __future__ import annotations

import argparse
import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .env import API_KEY_VARIABLE

DEFAULT_OUTPUT_DIR = "outputs"
DEFAULT_COUNT = 1
DEFAULT_SIZE = "1024x1024"
DEFAULT_MODEL = "gpt-image-1.5"
DEFAULT_NAME_PREFIX = "image"

_VALUE_FLAGS = {
    "-p": "--prompt",
    "--prompt": "--prompt",
    "-o": "--out",
    "--out": "--out",
    "-n": "--count",
    "--count": "--count",
    "--size": "--size",
    "--model": "--model",
    "--name": "--name",
}
_SWITCH_FLAGS = frozenset(
    {"--json", "-a", "--add-prompt", "-v", "--verbose", "-h", "--help"}
)


@dataclass(frozen=True)
class RunConfig:
    """Resolved options for a single invocation.

    Attributes:
        prompt: Prompt text; empty when none was given.
        output_dir: Directory that receives the saved images.
        count: Number of images to request.
        size: Size token passed to the API, e.g. "1024x1024".
        model: Model identifier passed to the API.
        name_prefix: Leading component of every output filename.
        emit_raw_json: Whether to echo the raw API response on stdout.
        add_prompt_metadata: Whether to store model and prompt in EXIF.
        verbose: Whether to print request diagnostics on stderr.
    """

    prompt: str = ""
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    count: int = DEFAULT_COUNT
    size: str = DEFAULT_SIZE
    model: str = DEFAULT_MODEL
    name_prefix: str = DEFAULT_NAME_PREFIX
    emit_raw_json: bool = False
    add_prompt_metadata: bool = False
    verbose: bool = False


def _parse_count(raw_values: Sequence[str | None] | None, default: int) -> int:
    count = default
    for raw in raw_values or ():
        if raw is None:
            continue
        try:
            value = float(raw)
        except ValueError:
            continue
        if not math.isfinite(value) or value <= 0 or not value.is_integer():
            continue
        count = int(value)
    return count


def _normalize_tokens(argv: Sequence[str]) -> list[str]:
    """Rewrite argv into tokens argparse can always accept.

    A value flag always takes the next token as its value, even one starting
    with '-', and is joined into ``--long=value``. Switches are passed through.
    Every other token is dropped, including malformed spellings such as
    ``--json=1`` or ``-verbose``.
    """
    tokens: list[str] = []
    i = 0
    while i < len(argv):
        token = argv[i]
        if token in _VALUE_FLAGS:
            long_flag = _VALUE_FLAGS[token]
            if i + 1 < len(argv):
                tokens.append(f"{long_flag}={argv[i + 1]}")
            else:
                tokens.append(long_flag)
            i += 2
            continue
        if token in _SWITCH_FLAGS:
            tokens.append(token)
        i += 1
    return tokens


def _add_value_option(
    parser: argparse.ArgumentParser, *flags: str, dest: str, metavar: str, help: str
) -> None:
    parser.add_argument(
        *flags, dest=dest, nargs="?", const=None, metavar=metavar, help=help
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="dall-e",
        allow_abbrev=False,
        description="dall-e - Generate images via OpenAI Images API",
        usage='%(prog)s -p "a red fox in a snowy forest" [options]',
        epilog=f"env:\n  {API_KEY_VARIABLE:<22}API key (required)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_value_option(
        parser, "-p", "--prompt", dest="prompt", metavar="TEXT",
        help="prompt to generate",
    )
    _add_value_option(
        parser, "-o", "--out", dest="out", metavar="DIR",
        help=f"output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "-n",
        "--count",
        dest="count",
        nargs="?",
        const=None,
        action="append",
        metavar="NUMBER",
        help=f"number of images (default: {DEFAULT_COUNT})",
    )
    _add_value_option(
        parser, "--size", dest="size", metavar="SIZE",
        help=f"image size (default: {DEFAULT_SIZE})",
    )
    _add_value_option(
        parser, "--model", dest="model", metavar="NAME",
        help=f"model name (default: {DEFAULT_MODEL})",
    )
    _add_value_option(
        parser, "--name", dest="name", metavar="PREFIX",
        help=f"output filename prefix (default: {DEFAULT_NAME_PREFIX})",
    )
    parser.add_argument(
        "--json",
        dest="emit_raw_json",
        action="store_true",
        help="print raw JSON response",
    )
    parser.add_argument(
        "-a",
        "--add-prompt",
        dest="add_prompt_metadata",
        action="store_true",
        help="store the model and prompt in the image EXIF metadata",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        dest="verbose",
        action="store_true",
        help="print request details and timing to stderr",
    )
    return parser


def parse_args(
    argv: Sequence[str],
    *,
    parser: argparse.ArgumentParser | None = None,
) -> RunConfig:
    """Parse argv into a RunConfig, ignoring anything unrecognized."""

    if parser is None:
        parser = build_parser()

    ns = parser.parse_args(_normalize_tokens(argv))

    return RunConfig(
        prompt=ns.prompt or "",
        output_dir=Path(ns.out or DEFAULT_OUTPUT_DIR),
        count=_parse_count(ns.count, DEFAULT_COUNT),
        size=ns.size or DEFAULT_SIZE,
        model=ns.model or DEFAULT_MODEL,
        name_prefix=ns.name or DEFAULT_NAME_PREFIX,
        emit_raw_json=bool(ns.emit_raw_json),
        add_prompt_metadata=bool(ns.add_prompt_metadata),
        verbose=bool(ns.verbose),
    )
