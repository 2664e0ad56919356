"""Request image generations from the OpenAI Images API."""

from __future__ import annotations

import json
import sys
import time
import urllib.error
import urllib.request
from collections.abc import Mapping
from pprint import pformat
from typing import Any

from .errors import DecodingError, RequestError
from .options import RunConfig

IMAGES_ENDPOINT = "https://api.openai.com/v1/images/generations"


def build_request_body(config: RunConfig) -> dict[str, Any]:
    return {
        "model": config.model,
        "prompt": config.prompt,
        "size": config.size,
        "n": config.count,
    }


def request_generation(config: RunConfig, api_key: str) -> Any:
    """POST one generation request and return the decoded JSON body.

    Exactly one request is sent. A non-success status raises RequestError with
    the raw body text; a success body that is not JSON raises DecodingError.
    """

    body = build_request_body(config)
    request = urllib.request.Request(
        IMAGES_ENDPOINT,
        data=json.dumps(body).encode("utf-8"),
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
        method="POST",
    )

    if config.verbose:
        _emit_request_info(IMAGES_ENDPOINT, body)
    start_time = time.perf_counter()

    try:
        with urllib.request.urlopen(request) as response:
            raw = response.read()
    except urllib.error.HTTPError as exc:
        error_text = _read_error_body(exc)
        raise RequestError(
            f"OpenAI API error: {exc.code} {error_text}",
            status_code=exc.code,
            body=error_text,
        ) from exc
    except urllib.error.URLError as exc:
        raise RequestError(f"OpenAI API request failed: {exc.reason}") from exc

    if config.verbose:
        _emit_elapsed(time.perf_counter() - start_time)

    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodingError(f"OpenAI API returned invalid JSON: {exc}") from exc


def _read_error_body(exc: urllib.error.HTTPError) -> str:
    try:
        data = exc.read()
    except OSError:
        return ""
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _emit_request_info(endpoint: str, body: Mapping[str, Any]) -> None:
    print("Request:", file=sys.stderr)
    print(pformat({"endpoint": endpoint, "body": dict(body)}), file=sys.stderr)


def _emit_elapsed(elapsed_seconds: float) -> None:
    formatted = _format_elapsed(elapsed_seconds)
    print(f"Elapsed time: {formatted}", file=sys.stderr)


def _format_elapsed(elapsed_seconds: float) -> str:
    hours, remainder = divmod(elapsed_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{int(hours)}:{int(minutes):02d}:{seconds:06.3f}"


__all__ = ["IMAGES_ENDPOINT", "build_request_body", "request_generation"]
