from certificates.qr_generator import build_verification_url, generate_qr_code, qr_png


def test_verification_url_format():
    url = build_verification_url("https://verify.example.com", "RR-0A1B2C3D4E")
    assert url == "https://verify.example.com/certificados?code=RR-0A1B2C3D4E"


def test_verification_url_strips_trailing_slash():
    url = build_verification_url("https://verify.example.com/", "RR-0A1B2C3D4E")
    assert url == "https://verify.example.com/certificados?code=RR-0A1B2C3D4E"


def test_verification_url_encodes_code():
    url = build_verification_url("https://verify.example.com", "A B/C&D")
    assert url == "https://verify.example.com/certificados?code=A+B%2FC%26D"


def test_qr_code_image():
    img = generate_qr_code("https://verify.example.com/certificados?code=RR-0A1B2C3D4E", size_pixels=120)
    assert img.size == (120, 120)
    assert img.mode == "RGB"
    assert set(img.getdata()) <= {(0, 0, 0), (255, 255, 255)}


def test_qr_png_bytes():
    data = qr_png("https://verify.example.com/certificados?code=RR-0A1B2C3D4E")
    assert data.startswith(b"\x89PNG\r\n\x1a\n")
