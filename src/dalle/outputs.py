"""Persist images returned by the generation endpoint."""

from __future__ import annotations

import base64
import binascii
import re
import sys
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import (
    DecodingError,
    DownloadError,
    FileWriteError,
    ResponseShapeError,
)

_CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
_DEFAULT_EXTENSION = ".png"
_DOWNLOAD_SCHEMES = frozenset({"http", "https"})
_UNSAFE_TIMESTAMP_CHARS = re.compile(r"[:.]")


def save_images(
    payload: Any,
    output_dir: Path,
    name_prefix: str,
    *,
    now: datetime | None = None,
    verbose: bool = False,
) -> list[Path]:
    """Write every image in ``payload["data"]`` and return the written paths.

    Items are handled in response order. Inline ``b64_json`` data wins over a
    ``url`` on the same item and is always saved as PNG. URL items are fetched
    one at a time and named after their Content-Type. Items carrying neither
    are skipped, so the result may be shorter than the item list.
    """

    items = _extract_items(payload)
    _ensure_dir(output_dir)
    stamp = safe_timestamp(now)

    saved: list[Path] = []
    for idx, item in enumerate(items, start=1):
        index = f"{idx:02d}"
        inline = item.get("b64_json") if isinstance(item, Mapping) else None
        url = item.get("url") if isinstance(item, Mapping) else None

        if inline:
            path = output_dir / f"{name_prefix}-{stamp}-{index}.png"
            _write_bytes(path, _decode_inline(inline, idx))
            saved.append(path)
            continue

        if url:
            data, content_type = _download(url)
            suffix = extension_for_content_type(content_type)
            path = output_dir / f"{name_prefix}-{stamp}-{index}{suffix}"
            _write_bytes(path, data)
            saved.append(path)
            continue

        if verbose:
            print(f"skipping item {index}: no image data", file=sys.stderr)

    return saved


def safe_timestamp(now: datetime | None = None) -> str:
    """Return a UTC ISO-8601 timestamp with ':' and '.' replaced by '-'."""

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    stamp = now.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"
    return _UNSAFE_TIMESTAMP_CHARS.sub("-", stamp)


def extension_for_content_type(content_type: str | None) -> str:
    if not content_type:
        return _DEFAULT_EXTENSION
    media_type = content_type.split(";", 1)[0].strip().lower()
    return _CONTENT_TYPE_EXTENSIONS.get(media_type, _DEFAULT_EXTENSION)


def _extract_items(payload: Any) -> list[Any]:
    items = payload.get("data") if isinstance(payload, Mapping) else None
    if not isinstance(items, list):
        raise ResponseShapeError("Unexpected API response format")
    return items


def _decode_inline(encoded: str, idx: int) -> bytes:
    try:
        return base64.b64decode(encoded)
    except (binascii.Error, ValueError) as exc:
        raise DecodingError(
            f"item {idx} carries invalid base64 image data"
        ) from exc


def _download(url: str) -> tuple[bytes, str | None]:
    scheme = urllib.parse.urlparse(url).scheme.lower()
    if scheme not in _DOWNLOAD_SCHEMES:
        raise DownloadError(
            f"Image download failed: unsupported URL scheme {scheme or url!r}"
        )
    try:
        with urllib.request.urlopen(url) as response:
            data = response.read()
            content_type = response.info().get("Content-Type")
    except urllib.error.HTTPError as exc:
        raise DownloadError(
            f"Image download failed: {exc.code}", status_code=exc.code
        ) from exc
    except urllib.error.URLError as exc:
        raise DownloadError(f"Image download failed: {exc.reason}") from exc
    return data, content_type


def _ensure_dir(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileWriteError(
            f"unable to create output directory {directory}: {exc}"
        ) from exc


def _write_bytes(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise FileWriteError(f"unable to write {path}: {exc}") from exc


__all__ = ["extension_for_content_type", "safe_timestamp", "save_images"]
