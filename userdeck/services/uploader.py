"""Picture storage on the local media root.

Images are centre-cropped to the requested aspect ratio, downscaled and
re-encoded as JPEG with Pillow before being written to disk.
"""

from __future__ import annotations

import asyncio
import io
import uuid
from enum import Enum
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from userdeck.core.config import Settings, get_settings
from userdeck.core.exceptions import BadRequestError
from userdeck.core.logging import get_logger

logger = get_logger(__name__)


class Ratio(Enum):
    SQUARE = (1, 1)
    BANNER = (16, 9)

    @property
    def value_float(self) -> float:
        width, height = self.value
        return width / height


def crop_to_ratio(image: Image.Image, ratio: Ratio) -> Image.Image:
    width, height = image.size
    target = ratio.value_float
    if width / height > target:
        new_width = round(height * target)
        left = (width - new_width) // 2
        return image.crop((left, 0, left + new_width, height))
    new_height = round(width / target)
    top = (height - new_height) // 2
    return image.crop((0, top, width, top + new_height))


class Uploader:
    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._root = Path(settings.media_root)
        self._base_url = settings.media_url.rstrip("/")
        self._max_file_size = settings.max_file_size
        self._max_side = settings.picture_max_size

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    def _process(self, data: bytes, ratio: Ratio) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                picture = crop_to_ratio(image.convert("RGB"), ratio)
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
            raise BadRequestError("Invalid image")
        picture.thumbnail((self._max_side, self._max_side))
        out = io.BytesIO()
        picture.save(out, format="JPEG", quality=85, optimize=True)
        return out.getvalue()

    def _write(self, relative: str, content: bytes) -> None:
        path = self._root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def upload_image(self, user_id: int, data: bytes, ratio: Ratio) -> str:
        """Store *data* as a picture owned by *user_id* and return its URL."""
        if len(data) > self._max_file_size:
            raise BadRequestError("File too large")
        content = await asyncio.to_thread(self._process, data, ratio)
        relative = f"users/{user_id}/{uuid.uuid4().hex}.jpg"
        await asyncio.to_thread(self._write, relative, content)
        logger.info("Picture stored", user_id=user_id, path=relative, size=len(content))
        return f"{self._base_url}/{relative}"

    async def delete_file(self, url: str) -> None:
        prefix = f"{self._base_url}/"
        if not url.startswith(prefix):
            raise ValueError(f"Not a stored file: {url!r}")
        path = (self._root / url[len(prefix):]).resolve()
        if self._root.resolve() not in path.parents:
            raise ValueError(f"Not a stored file: {url!r}")
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info("Stored file deleted", url=url)
