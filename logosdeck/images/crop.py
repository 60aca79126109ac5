from __future__ import annotations

import base64
import binascii
import re
from io import BytesIO

from PIL import Image, ImageMath, UnidentifiedImageError

from logosdeck.errors import ImageUnavailable, MissingSourceImage
from logosdeck.images.payload import ImagePayload

_DATA_URL_RE = re.compile(r"^data:.*?;base64,(.+)$", flags=re.IGNORECASE | re.DOTALL)


def decode_data_url(value: str) -> bytes:
    """Decode a ``data:...;base64,`` URL or a bare base64 string."""
    match = _DATA_URL_RE.match(value.strip())
    payload = match.group(1) if match else value
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageUnavailable("Unable to decode base64 image data.") from exc


class PixelBuffer:
    """Decoded RGBA image that can be cropped and edited pixel by pixel."""

    def __init__(self, image: Image.Image) -> None:
        self.image = image if image.mode == "RGBA" else image.convert("RGBA")

    @classmethod
    def decode(cls, data: bytes) -> "PixelBuffer":
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise ImageUnavailable("Source image could not be decoded.") from exc
        return cls(img)

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def crop_percent(self, x: float, y: float, w: float, h: float) -> "PixelBuffer":
        width, height = self.image.size
        left = max(0, round(x / 100 * width))
        top = max(0, round(y / 100 * height))
        right = min(width, round((x + w) / 100 * width))
        bottom = min(height, round((y + h) / 100 * height))
        if right <= left or bottom <= top:
            raise ImageUnavailable(f"Crop region ({x}, {y}, {w}, {h}) is empty.")
        return PixelBuffer(self.image.crop((left, top, right, bottom)))

    def clear_bright_pixels(self, threshold: int) -> int:
        """Make pixels whose channel mean exceeds ``threshold`` fully transparent.

        Returns the number of pixels cleared.
        """
        limit = 3 * threshold
        r, g, b, alpha = self.image.split()
        # Channel sum in 32-bit mode, so no clipping at 255.
        bright = ImageMath.lambda_eval(
            lambda args: (args["r"] + args["g"] + args["b"]) > limit, r=r, g=g, b=b)
        mask = bright.convert("L").point(lambda v: 255 if v else 0)
        cleared = mask.histogram()[255]
        if cleared:
            alpha.paste(0, mask=mask)
            self.image.putalpha(alpha)
        return cleared

    def encode(self) -> bytes:
        buf = BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()


def crop_region(
    original_image: str | None,
    rect: tuple[float, float, float, float],
    *,
    threshold: int = 230,
) -> ImagePayload:
    if not original_image:
        raise MissingSourceImage("Deck has no original image to crop from.")

    buf = PixelBuffer.decode(decode_data_url(original_image)).crop_percent(*rect)
    buf.clear_bright_pixels(threshold)
    width, height = buf.size
    return ImagePayload(buf.encode(), "image/png", width, height, "crop")
