from __future__ import annotations

from pathlib import Path
from typing import Any

import piexif  # type: ignore[import-untyped]
from PIL import Image

SOFTWARE = "dall-e"


def describe(prompt: str, model: str | None = None) -> str:
    """Build the ImageDescription text for a prompt, folded onto one line."""

    d = ""
    if model:
        d += f"Model: {model} "
    d += f"Prompt: {prompt}"
    return d.replace("\r\n", " ").replace("\n", " ")


def set_prompt_metadata(
    image_path: Path | str,
    *,
    prompt: str,
    model: str | None = None,
    quiet: bool = True,
) -> bool:
    """Store the model and prompt in the EXIF ImageDescription of an image.

    A fresh EXIF block holds the description and the Software tag. JPEG files
    get the block spliced in without re-encoding; PNG and WebP files are
    re-saved losslessly in their own format.

    Args:
        image_path: Path to the image file to update.
        prompt: Prompt text that produced the image.
        model: Optional model identifier stored ahead of the prompt.
        quiet: If True, suppresses print messages. If False, prints status.

    Returns:
        bool: True on success, False on failure (including missing file).
    """
    p = Path(image_path)

    if not p.exists():
        if not quiet:
            print(f"File not found: {p}")
        return False

    zeroth: dict[int, Any] = {
        piexif.ImageIFD.Software: SOFTWARE.encode(),
        piexif.ImageIFD.ImageDescription: describe(prompt, model).encode(
            "utf-8", errors="ignore"
        ),
    }
    exif_dict: dict[str, Any] = {
        "0th": zeroth,
        "Exif": {},
        "GPS": {},
        "Interop": {},
        "1st": {},
        "thumbnail": None,
    }

    try:
        exif_bytes = piexif.dump(exif_dict)
        with Image.open(p) as img:
            image_format = img.format
            if image_format != "JPEG":
                img.load()
                img.info.pop("exif", None)
                save_options = {"lossless": True} if image_format == "WEBP" else {}
                img.save(p, format=image_format, exif=exif_bytes, **save_options)
        if image_format == "JPEG":
            # splice the APP1 segment in place; the scan data is not re-encoded
            piexif.insert(exif_bytes, str(p))
        if not quiet:
            print(f"Updated EXIF data for {p}")
        return True
    except Exception as e:
        if not quiet:
            print(f"Error updating EXIF data for {p}: {e}")
        return False

