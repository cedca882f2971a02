import json
import time
from io import BytesIO

import pytest
import requests
from PIL import Image

from certificates.config import CertificateConfig
from certificates.errors import ImageFetchError, UnsupportedImageError
from certificates.image_fetcher import FetchedImage
from certificates.models import LineItem, Order


def image_bytes(fmt="PNG", size=(40, 20)):
    buf = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


class FakeResponse:
    """Streamed response stand-in; chunk_delay makes the body trickle in."""

    def __init__(self, status_code=200, content=b"", headers=None, json_data=None, text="",
                 chunk_size=None, chunk_delay=0.0):
        if json_data is not None:
            content = json.dumps(json_data).encode("utf-8")
        elif text:
            content = text.encode("utf-8")
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay
        self.closed = False

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def iter_content(self, chunk_size=1):
        size = self.chunk_size or chunk_size
        for start in range(0, len(self.content), size):
            if self.chunk_delay:
                time.sleep(self.chunk_delay)
            yield self.content[start:start + size]

    def close(self):
        self.closed = True


class FakeSession:
    """Records calls and returns a canned response (or raises an exception)."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class StubImageFetcher:
    """Maps URLs to outcomes: 'png', 'jpeg', 'webp' or 'timeout'."""

    def __init__(self, outcomes=None, default="png"):
        self.outcomes = outcomes or {}
        self.default = default
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        outcome = self.outcomes.get(url, self.default)
        if outcome == "webp":
            raise UnsupportedImageError(f"Unsupported image type image/webp for {url}")
        if outcome == "timeout":
            raise ImageFetchError(f"Image request failed for {url}: {requests.Timeout('read timed out')}")
        fmt = "JPEG" if outcome == "jpeg" else "PNG"
        return FetchedImage(image_bytes(fmt, (60, 30)), f"image/{outcome}", 60, 30)


@pytest.fixture
def config():
    return CertificateConfig(
        brand="RITMODEREVER",
        verify_base_url="https://verify.example.com",
        image_fetch_timeout_ms=500,
        code_prefix="RR",
        language="es",
    )


@pytest.fixture
def order():
    return Order(
        id="gid://shopify/Order/1001",
        name="#1001",
        line_items=(
            LineItem("gid://shopify/LineItem/1", "Ocean Print", "OCN-01", 2, "https://cdn.example.com/1.png"),
            LineItem("gid://shopify/LineItem/2", "Desert Print", "DST-02", 1, "https://cdn.example.com/2.png"),
            LineItem("gid://shopify/LineItem/3", "Forest Print", "FRS-03", 3, "https://cdn.example.com/3.png"),
        ),
        currency="COP",
        created_at="2026-10-01T12:00:00Z",
    )
