"""
Fetch product images for certificate pages.

Only JPEG and PNG can be embedded; every other media type is treated the same
as a failed download.
"""
import logging
from dataclasses import dataclass
from io import BytesIO

import requests
from PIL import Image, UnidentifiedImageError

from certificates.errors import ImageDecodeError, ImageFetchError, UnsupportedImageError
from certificates.http_utils import deadline_after, read_body, remaining

logger = logging.getLogger(__name__)

ACCEPTED_TYPES = frozenset({"image/jpeg", "image/jpg", "image/pjpeg", "image/png"})
MAX_IMAGE_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class FetchedImage:
    content: bytes
    content_type: str
    width: int
    height: int


def media_type(header_value):
    """'image/PNG; charset=binary' -> 'image/png'"""
    return (header_value or "").split(";", 1)[0].strip().lower()


class ImageFetcher:
    """Downloads an image with a bounded timeout. One request per call, no cache."""

    def __init__(self, timeout_ms=3000, session=None, max_bytes=MAX_IMAGE_BYTES):
        self.timeout = max(timeout_ms, 1) / 1000.0
        self.max_bytes = max_bytes
        self.session = session or requests.Session()

    def fetch(self, url):
        """The whole fetch, connect to last byte, must finish within timeout_ms."""
        if not url:
            raise ImageFetchError("No image URL")

        deadline = deadline_after(self.timeout)
        try:
            resp = self.session.get(url, stream=True, timeout=remaining(deadline))
        except requests.RequestException as e:
            raise ImageFetchError(f"Image request failed for {url}: {e}") from e

        try:
            if not resp.ok:
                raise ImageFetchError(f"Image request returned {resp.status_code} for {url}")

            content_type = media_type(resp.headers.get("Content-Type"))
            if content_type not in ACCEPTED_TYPES:
                raise UnsupportedImageError(f"Unsupported image type {content_type or '(none)'} for {url}")

            content = read_body(resp, deadline, self.max_bytes, ImageFetchError, f"image {url}")
        finally:
            resp.close()

        width, height = self._dimensions(content, url)
        logger.debug("Fetched image %s (%s, %dx%d)", url, content_type, width, height)
        return FetchedImage(content, content_type, width, height)

    @staticmethod
    def _dimensions(content, url):
        try:
            with Image.open(BytesIO(content)) as img:
                width, height = img.size
                fmt = img.format
        except (UnidentifiedImageError, OSError) as e:
            raise ImageDecodeError(f"Could not decode image from {url}: {e}") from e

        if fmt not in ("JPEG", "PNG"):
            raise UnsupportedImageError(f"Image from {url} is {fmt}, not JPEG/PNG")
        if width <= 0 or height <= 0:
            raise ImageDecodeError(f"Invalid image dimensions {width}x{height} for {url}")
        return width, height
