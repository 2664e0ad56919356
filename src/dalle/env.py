"""Environment helpers for locating the API credential."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError

API_KEY_VARIABLE = "OPENAI_API_KEY"

_DOTENV_FILE = Path(".env")


def load_environment() -> None:
    """Load ``.env`` into the process environment without overriding it."""

    load_dotenv(_DOTENV_FILE)  # silently ignore if there is none, assume defaults.


def require_api_key(environ: Mapping[str, str] | None = None) -> str:
    if environ is None:
        environ = os.environ
    value = environ.get(API_KEY_VARIABLE, "")
    if not value.strip():
        raise ConfigurationError(f"Missing {API_KEY_VARIABLE} in environment.")
    return value.strip()
