"""
Branding Image Encoding

Company logos and profile pictures are stored inside the snapshot as
data: URLs, so they travel with the ledger and need no file hosting.

DESIGN DECISION: Uploads are checked and shrunk before encoding:
1. Only PNG and JPEG are accepted (what a browser renders everywhere)
2. Oversized uploads are refused before decoding
3. The image is thumbnailed to a small edge so the snapshot stays small
"""

import base64
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from finvue.config import get_settings


ALLOWED_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
}


class InvalidImageError(Exception):
    """The upload is not a usable PNG or JPEG image."""
    pass


def encode_image_data_url(
    image_bytes: bytes,
    max_edge: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> str:
    """
    Validate, thumbnail and encode an uploaded image.

    Args:
        image_bytes: Raw upload
        max_edge: Longest edge in pixels after resizing
        max_bytes: Largest accepted upload

    Returns:
        A data: URL in the image's own format

    Raises:
        InvalidImageError: Empty, too large, unreadable or not PNG/JPEG
    """
    if max_edge is None or max_bytes is None:
        settings = get_settings().app
        max_edge = max_edge or settings.branding_image_size
        max_bytes = max_bytes or settings.max_upload_size_bytes

    if not image_bytes:
        raise InvalidImageError("The uploaded file is empty")
    if len(image_bytes) > max_bytes:
        raise InvalidImageError(
            f"Image is too large ({len(image_bytes) // 1024} KB, "
            f"limit {max_bytes // 1024} KB)"
        )

    try:
        img = Image.open(BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Could not read the image: {e}")

    image_format = img.format
    if image_format not in ALLOWED_FORMATS:
        raise InvalidImageError(f"Unsupported image format: {image_format}")

    img.thumbnail((max_edge, max_edge))

    if image_format == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    output = BytesIO()
    img.save(output, format=image_format)
    encoded = base64.b64encode(output.getvalue()).decode("ascii")
    return f"data:{ALLOWED_FORMATS[image_format]};base64,{encoded}"
