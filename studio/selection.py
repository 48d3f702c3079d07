"""
Upload Selection State
======================

Holds the images a page has selected for generation, in arrival order,
together with their preview handles.

Usage:
    from studio.selection import ImageSelection, SelectedImage

    selection = ImageSelection(max_images=4)
    selection.add([SelectedImage.from_path("cat.png"), SelectedImage.from_path("dog.jpg")])
    selection.remove(0)
    selection.clear()
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Iterable

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

MAX_IMAGES = 4


def sniff_content_type(data: bytes) -> str:
    """Identify an image MIME type from its header bytes."""
    try:
        with Image.open(BytesIO(data)) as img:
            return Image.MIME.get(img.format or "", "application/octet-stream")
    except (UnidentifiedImageError, OSError):
        return "application/octet-stream"


@dataclass
class SelectedImage:
    """An image picked by the user; backed either by raw bytes or by a file path."""

    name: str
    content_type: str
    data: bytes | None = None
    path: Path | None = None
    preview_url: str | None = field(default=None, compare=False)

    @classmethod
    def from_path(cls, path: str | Path) -> "SelectedImage":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        if content_type is None and path.is_file():
            with open(path, "rb") as f:
                content_type = sniff_content_type(f.read(64 * 1024))
        return cls(name=path.name, content_type=content_type or "application/octet-stream", path=path)

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "image", content_type: str | None = None) -> "SelectedImage":
        return cls(name=name, content_type=content_type or sniff_content_type(data), data=data)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class PreviewRegistry:
    """Issues ``blob:`` preview handles and tracks which ones are still live."""

    def __init__(self) -> None:
        self._live: dict[str, SelectedImage] = {}

    def create(self, image: SelectedImage) -> str:
        url = f"blob:studio/{uuid.uuid4()}"
        self._live[url] = image
        return url

    def revoke(self, url: str | None) -> None:
        if url is not None:
            self._live.pop(url, None)

    def resolve(self, url: str) -> SelectedImage | None:
        return self._live.get(url)

    def is_live(self, url: str | None) -> bool:
        return url in self._live

    def __len__(self) -> int:
        return len(self._live)


class ImageSelection:
    """
    Ordered selection of at most ``max_images`` images.

    In replace mode each ``add`` call swaps out the current selection
    instead of appending to it.
    """

    def __init__(self, max_images: int = MAX_IMAGES, replace: bool = False, previews: PreviewRegistry | None = None):
        if not 1 <= max_images <= MAX_IMAGES:
            raise ValueError(f"max_images must be between 1 and {MAX_IMAGES}")
        self.max_images = max_images
        self.replace = replace
        self.previews = previews or PreviewRegistry()
        self._images: list[SelectedImage] = []

    def add(self, files: Iterable[SelectedImage]) -> list[SelectedImage]:
        """Accept image files from a batch; returns the images actually kept."""
        candidates = [f for f in files if f.is_image]
        if not candidates:
            return []

        if self.replace:
            self.clear()

        room = self.max_images - len(self._images)
        accepted = candidates[:max(room, 0)]
        dropped = len(candidates) - len(accepted)
        if dropped:
            logger.debug("Selection full; dropped %d image(s)", dropped)

        for image in accepted:
            image.preview_url = self.previews.create(image)
            self._images.append(image)
        return accepted

    def remove(self, index: int) -> SelectedImage:
        image = self._images.pop(index)
        self.previews.revoke(image.preview_url)
        image.preview_url = None
        return image

    def clear(self) -> None:
        for image in self._images:
            self.previews.revoke(image.preview_url)
            image.preview_url = None
        self._images = []

    @property
    def images(self) -> list[SelectedImage]:
        return list(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self):
        return iter(list(self._images))

    def __getitem__(self, index: int) -> SelectedImage:
        return self._images[index]
