"""Raster image transforms backed by Pillow."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

from PIL import Image, ImageFilter, ImageOps

from filesmith.drivers.base import BaseDriver
from filesmith.skills.models import Skill
from filesmith.utils.exceptions import DriverExecutionError
from filesmith.utils.file_utils import extension_of

# File extension -> Pillow format name.
_FORMATS: dict[str, str] = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "bmp": "BMP",
    "gif": "GIF",
    "tif": "TIFF",
    "tiff": "TIFF",
}

_ROTATIONS = {
    "90": Image.Transpose.ROTATE_270,  # Pillow rotates counter-clockwise
    "180": Image.Transpose.ROTATE_180,
    "270": Image.Transpose.ROTATE_90,
}


def _resize(img: Image.Image, params: dict[str, Any]) -> Image.Image:
    width = max(1, int(params.get("width", img.width)))
    height = max(1, round(img.height * width / img.width))
    return img.resize((width, height), Image.Resampling.LANCZOS)


def _grayscale(img: Image.Image, params: dict[str, Any]) -> Image.Image:
    return ImageOps.grayscale(img)


def _blur(img: Image.Image, params: dict[str, Any]) -> Image.Image:
    return img.filter(ImageFilter.GaussianBlur(float(params.get("radius", 2.0))))


def _rotate(img: Image.Image, params: dict[str, Any]) -> Image.Image:
    angle = str(params.get("angle", "90"))
    if angle not in _ROTATIONS:
        raise DriverExecutionError("image", f"unsupported rotation angle: {angle}")
    return img.transpose(_ROTATIONS[angle])


def _flip(img: Image.Image, params: dict[str, Any]) -> Image.Image:
    if params.get("direction", "horizontal") == "vertical":
        return ImageOps.flip(img)
    return ImageOps.mirror(img)


def _reencode(img: Image.Image, params: dict[str, Any]) -> Image.Image:
    # Pixels unchanged; the encoder settings do the work.
    return img


class ImageDriver(BaseDriver):
    """Pillow-backed driver for the ``image`` tag.

    The operation is chosen by ``skill.executor.handler``, falling back to
    the skill id.  The output encoding follows the output file's extension.
    """

    driver_id = "image"

    operations: dict[str, Callable[[Image.Image, dict[str, Any]], Image.Image]] = {
        "resize": _resize,
        "grayscale": _grayscale,
        "blur": _blur,
        "rotate": _rotate,
        "flip": _flip,
        "compress": _reencode,
        "convert_to_jpeg": _reencode,
        "convert_to_png": _reencode,
        "convert_to_webp": _reencode,
    }

    async def transform(
        self,
        input_path: Path,
        output_path: Path,
        skill: Skill,
        params: dict[str, Any],
    ) -> None:
        await asyncio.to_thread(self._render, input_path, output_path, skill, params)

    def _render(
        self,
        input_path: Path,
        output_path: Path,
        skill: Skill,
        params: dict[str, Any],
    ) -> None:
        handler = skill.executor.handler or skill.id
        operation = self.operations.get(handler)
        if operation is None:
            raise DriverExecutionError(self.driver_id, f"unsupported image skill: {handler}")

        fmt = _FORMATS.get(extension_of(output_path))
        if fmt is None:
            raise DriverExecutionError(
                self.driver_id, f"cannot encode images as '{extension_of(output_path)}'"
            )

        with Image.open(input_path) as source:
            source.load()
            img = source.convert("RGBA") if source.mode == "P" else source.copy()

        result = operation(img, params)
        self._save(result, output_path, fmt, handler, params)

    @staticmethod
    def _save(
        img: Image.Image,
        output_path: Path,
        fmt: str,
        handler: str,
        params: dict[str, Any],
    ) -> None:
        options: dict[str, Any] = {}

        if fmt == "JPEG":
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            quality = int(params.get("quality", 90))
            options["quality"] = min(100, max(40, quality))
        elif fmt == "WEBP":
            options["quality"] = min(100, max(40, int(params.get("quality", 85))))
        elif fmt == "PNG" and handler == "compress":
            options["optimize"] = True

        img.save(output_path, format=fmt, **options)
