"""
Data URL Encoding
=================

Converts selected images into ``data:`` URLs for the generation request.

Usage:
    import asyncio
    from studio.encoding import encode_images

    urls = asyncio.run(encode_images(selection.images))
"""

import asyncio
import base64
from typing import Sequence

from studio.selection import SelectedImage


class ImageReadError(Exception):
    """Raised when a selected image cannot be read."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Failed to read image '{name}': {reason}")
        self.name = name


def _read_bytes(image: SelectedImage) -> bytes:
    if image.data is not None:
        return image.data
    if image.path is None:
        raise ImageReadError(image.name, "no data or path")
    try:
        return image.path.read_bytes()
    except OSError as e:
        raise ImageReadError(image.name, e.strerror or str(e)) from e


async def to_data_url(image: SelectedImage) -> str:
    """Read one image (off the event loop when file-backed) and return its data URL."""
    if image.data is not None:
        raw = image.data
    else:
        raw = await asyncio.to_thread(_read_bytes, image)
    payload = base64.b64encode(raw).decode("ascii")
    return f"data:{image.content_type};base64,{payload}"


async def encode_images(images: Sequence[SelectedImage]) -> list[str]:
    """
    Encode all images concurrently.

    Results are positional: ``result[i]`` belongs to ``images[i]`` whatever
    order the reads finish in. If any read fails, ImageReadError propagates
    and nothing is returned.
    """
    return list(await asyncio.gather(*(to_data_url(image) for image in images)))
