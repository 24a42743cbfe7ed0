"""Inline PNG previews for the UI."""

from __future__ import annotations

import asyncio
import base64
import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from filesmith.utils.logging import get_logger

logger = get_logger(__name__)


def image_preview(path: str | Path, max_width: int = 520) -> str:
    """Return a ``data:image/png;base64,...`` URL, or ``""`` for non-images."""
    try:
        with Image.open(path) as img:
            img.load()
            if max_width > 0 and img.width > max_width:
                height = max(1, round(img.height * max_width / img.width))
                img = img.resize((max_width, height), Image.Resampling.LANCZOS)
            buf = io.BytesIO()
            img.save(buf, format="PNG")
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.debug("preview_unavailable", path=str(path), reason=str(exc))
        return ""

    b64 = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:image/png;base64,{b64}"


async def build_preview(path: str | Path, max_width: int = 520) -> str:
    return await asyncio.to_thread(image_preview, path, max_width)
