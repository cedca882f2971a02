"""
Verification URLs and their QR codes.
"""
from io import BytesIO
from urllib.parse import urlencode

import qrcode
from PIL import Image


VERIFY_PATH = "/certificados"
QR_PIXELS = 330    # ~3 px per point at the 110 pt square printed on the page


def build_verification_url(verify_base_url, code):
    """<verify_base_url>/certificados?code=<urlencoded code>"""
    base = (verify_base_url or "").rstrip("/")
    return f"{base}{VERIFY_PATH}?{urlencode({'code': code})}"


def generate_qr_code(verification_url, size_pixels=QR_PIXELS):
    """Square black-on-white PIL image encoding the verification URL."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(verification_url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white").get_image().convert("RGB")
    # nearest keeps module edges sharp for scanners
    return img.resize((size_pixels, size_pixels), Image.NEAREST)


def qr_png(verification_url, size_pixels=QR_PIXELS):
    """PNG bytes ready for page.insert_image(stream=...)."""
    buf = BytesIO()
    generate_qr_code(verification_url, size_pixels).save(buf, format="PNG")
    return buf.getvalue()
