import time

import pytest
import requests

from certificates.errors import ImageDecodeError, ImageFetchError, ImageUnavailableError, UnsupportedImageError
from certificates.image_fetcher import ImageFetcher, media_type
from tests.conftest import FakeResponse, FakeSession, image_bytes

URL = "https://cdn.example.com/product"


def _fetcher(response=None, error=None, timeout_ms=1500):
    session = FakeSession(response=response, error=error)
    return ImageFetcher(timeout_ms=timeout_ms, session=session), session


def test_fetch_png():
    fetcher, session = _fetcher(FakeResponse(200, image_bytes("PNG", (40, 20)), {"Content-Type": "image/png"}))
    image = fetcher.fetch(URL)
    assert (image.width, image.height) == (40, 20)
    assert image.content_type == "image/png"
    url, kwargs = session.calls[0]
    assert url == URL
    assert kwargs["stream"] is True
    assert 0 < kwargs["timeout"] <= 1.5
    assert session.response.closed


def test_fetch_jpeg_with_parameters_in_header():
    fetcher, _ = _fetcher(FakeResponse(200, image_bytes("JPEG", (10, 30)), {"Content-Type": "image/JPEG; charset=binary"}))
    image = fetcher.fetch(URL)
    assert (image.width, image.height) == (10, 30)


@pytest.mark.parametrize("content_type", ["image/webp", "image/avif", "text/html", None])
def test_rejects_other_media_types(content_type):
    headers = {"Content-Type": content_type} if content_type else {}
    fetcher, _ = _fetcher(FakeResponse(200, b"RIFF....WEBP", headers))
    with pytest.raises(UnsupportedImageError):
        fetcher.fetch(URL)


def test_rejects_webp_bytes_declared_as_png():
    fetcher, _ = _fetcher(FakeResponse(200, image_bytes("WEBP"), {"Content-Type": "image/png"}))
    with pytest.raises(ImageUnavailableError):
        fetcher.fetch(URL)


def test_timeout_is_fetch_error():
    fetcher, _ = _fetcher(error=requests.Timeout("read timed out"))
    with pytest.raises(ImageFetchError):
        fetcher.fetch(URL)


def test_connection_error_is_fetch_error():
    fetcher, _ = _fetcher(error=requests.ConnectionError("refused"))
    with pytest.raises(ImageFetchError):
        fetcher.fetch(URL)


def test_http_error_status():
    fetcher, _ = _fetcher(FakeResponse(404, b"", {"Content-Type": "text/html"}))
    with pytest.raises(ImageFetchError):
        fetcher.fetch(URL)


def test_garbage_bytes_are_decode_error():
    fetcher, _ = _fetcher(FakeResponse(200, b"not an image", {"Content-Type": "image/jpeg"}))
    with pytest.raises(ImageDecodeError):
        fetcher.fetch(URL)


def test_missing_url():
    fetcher, session = _fetcher()
    with pytest.raises(ImageFetchError):
        fetcher.fetch("")
    assert session.calls == []


def test_media_type():
    assert media_type("image/PNG; q=1") == "image/png"
    assert media_type(None) == ""


def test_trickling_body_is_cut_off_at_the_deadline():
    body = image_bytes("PNG", (40, 20))
    fetcher, session = _fetcher(
        FakeResponse(200, body, {"Content-Type": "image/png"}, chunk_size=1, chunk_delay=0.02),
        timeout_ms=200,
    )
    started = time.monotonic()
    with pytest.raises(ImageFetchError) as excinfo:
        fetcher.fetch(URL)
    assert time.monotonic() - started < 1.0
    assert "Timed out" in str(excinfo.value)
    assert session.response.closed


def test_oversized_body_is_rejected():
    session = FakeSession(FakeResponse(200, image_bytes("PNG", (40, 20)), {"Content-Type": "image/png"}, chunk_size=16))
    fetcher = ImageFetcher(timeout_ms=1000, session=session, max_bytes=32)
    with pytest.raises(ImageFetchError):
        fetcher.fetch(URL)
    assert session.response.closed


def test_rejected_media_type_closes_response():
    fetcher, session = _fetcher(FakeResponse(200, b"RIFF....WEBP", {"Content-Type": "image/webp"}))
    with pytest.raises(UnsupportedImageError):
        fetcher.fetch(URL)
    assert session.response.closed
