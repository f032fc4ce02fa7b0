"""Square PNG thumbnails with Pillow."""

from __future__ import annotations

import enum
import logging
from io import BytesIO
from typing import Protocol

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

PNG_CONTENT_TYPE = "image/png"


class TransformErrorKind(str, enum.Enum):
    UNDECODABLE_INPUT = "undecodable input"
    ENCODER_FAILURE = "encoder failure"
    NO_THUMBNAIL = "no thumbnail created"


class TransformError(Exception):
    def __init__(self, kind: TransformErrorKind, detail: str = "") -> None:
        message = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(message)
        self.kind = kind
        self.detail = detail


class ThumbnailTransform(Protocol):
    def apply(self, data: bytes, target_size: int) -> bytes:
        ...


class PngThumbnailTransform:
    """
    PNG in, `target_size` x `target_size` PNG out.

    The source is centre-cropped to a square before resizing so the output
    always has the exact requested dimensions.
    """

    content_type = PNG_CONTENT_TYPE

    def apply(self, data: bytes, target_size: int) -> bytes:
        if target_size <= 0:
            raise ValueError("target_size must be a positive integer")

        image = self._decode(data)
        if image.width == 0 or image.height == 0:
            raise TransformError(TransformErrorKind.NO_THUMBNAIL, "source image has no pixels")

        if image.mode not in {"RGB", "RGBA", "L", "LA"}:
            image = image.convert("RGBA")
        thumb = ImageOps.fit(image, (target_size, target_size), method=Image.Resampling.LANCZOS)
        if thumb.size != (target_size, target_size):
            raise TransformError(
                TransformErrorKind.NO_THUMBNAIL,
                f"resize produced {thumb.size[0]}x{thumb.size[1]}",
            )

        buf = BytesIO()
        try:
            thumb.save(buf, format="PNG")
        except (OSError, ValueError) as exc:
            raise TransformError(TransformErrorKind.ENCODER_FAILURE, str(exc)) from exc
        logger.debug("thumbnail: %dx%d -> %dx%d", image.width, image.height, target_size, target_size)
        return buf.getvalue()

    @staticmethod
    def _decode(data: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(data))
            if image.format != "PNG":
                raise TransformError(
                    TransformErrorKind.UNDECODABLE_INPUT,
                    f"expected PNG input, got {image.format}",
                )
            image.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
            raise TransformError(TransformErrorKind.UNDECODABLE_INPUT, str(exc)) from exc
        return image
