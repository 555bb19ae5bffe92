"""
Infrastructure: Pillow Image Codec

IImageCodec over Pillow, with pillow-heif as the decoder of last resort
for HEIC/HEIF photos. Output is always WebP.
"""

from io import BytesIO
from typing import Optional

import pillow_heif
from PIL import Image, ImageOps, UnidentifiedImageError

from gitmemo.domain.errors import ValidationError
from gitmemo.domain.images.entities import DecodedImage
from gitmemo.logging_utils import StructuredLogger, ComponentType

HEIF_MIME_TYPES = ("image/heic", "image/heif")


class PillowImageCodec:
    """
    Decode, resize and WebP-encode rasters.

    Decoding applies EXIF orientation, keeps only the first frame of an
    animation and converts palette/CMYK/16-bit modes to RGB or RGBA.
    """

    output_mime_type = "image/webp"

    def __init__(self, method: int = 4):
        """
        Args:
            method: WebP encoder effort, 0 (fast) to 6 (smallest)
        """
        self.method = method
        self.logger = StructuredLogger(ComponentType.IMAGE_NORMALIZER)

    def decode(self, data: bytes, mime_type: Optional[str] = None) -> DecodedImage:
        if not data:
            raise ValidationError("Image is empty")

        image = None
        if (mime_type or "").lower() not in HEIF_MIME_TYPES:
            image = self._open_with_pillow(data)
        if image is None:
            image = self._open_with_heif(data)
        if image is None:
            raise ValidationError(
                "Unable to decode image", context={"mime_type": mime_type, "bytes": len(data)}
            )

        image = ImageOps.exif_transpose(image)
        image = self._normalize_mode(image)
        return DecodedImage(width=image.width, height=image.height, handle=image)

    def resize(self, image: DecodedImage, width: int, height: int) -> DecodedImage:
        resized = image.handle.resize((width, height), Image.Resampling.LANCZOS)
        return DecodedImage(width=resized.width, height=resized.height, handle=resized)

    def encode(self, image: DecodedImage, quality: int) -> bytes:
        buffer = BytesIO()
        image.handle.save(buffer, format="WEBP", quality=quality, method=self.method)
        return buffer.getvalue()

    def _open_with_pillow(self, data: bytes) -> Optional[Image.Image]:
        try:
            image = Image.open(BytesIO(data))
            image.seek(0)
            image.load()
            return image
        except Image.DecompressionBombError as e:
            raise ValidationError(f"Image too large to decode: {e}") from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            self.logger.logger.debug(f"Pillow could not decode image, trying HEIF: {e}")
            return None

    def _open_with_heif(self, data: bytes) -> Optional[Image.Image]:
        try:
            heif_file = pillow_heif.open_heif(BytesIO(data), convert_hdr_to_8bit=True)
            return heif_file.to_pillow()
        except Exception as e:
            self.logger.logger.debug(f"HEIF decoder could not decode image: {e}")
            return None

    @staticmethod
    def _normalize_mode(image: Image.Image) -> Image.Image:
        has_alpha = image.mode in ("RGBA", "LA", "PA") or (
            image.mode == "P" and "transparency" in image.info
        )
        target = "RGBA" if has_alpha else "RGB"
        if image.mode != target:
            image = image.convert(target)
        return image
