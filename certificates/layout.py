"""
Page layout for a certificate.

Each block computes its own geometry from the page rectangle only, so the
layout can be checked without drawing anything. Coordinates follow PyMuPDF:
points, origin at the top-left corner, y grows downwards.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

import fitz


FONT_REGULAR = "helv"
FONT_BOLD = "hebo"

DARK = (0.17, 0.24, 0.31)      # #2c3e50
MUTED = (0.36, 0.42, 0.47)     # #5c6a78
INK = (0.07, 0.09, 0.15)       # #111827
ERROR = (0.91, 0.30, 0.24)     # #e74c3c

FRAME_MARGIN = 24
FRAME_GAP = 6
CONTENT_MARGIN = 72
MIN_FONT_SIZE = 6

IMAGE_BOX_TOP = 350
IMAGE_BOX_SIZE = (220, 160)
QR_SIZE = 110
QR_GAP = 18
SIGNATURE_WIDTH = 170
SIGNATURE_OFFSET = 130   # from page center to each line's center
SIGNATURE_BOTTOM = 110   # line distance from page bottom
HEADER_BAND = 78
FOOTER_BAND = 80

LABELS = {
    "es": {
        "title": "CERTIFICADO DE AUTENTICIDAD",
        "order": "Orden",
        "code": "Código",
        "statement": "Se certifica la autenticidad de:",
        "sku": "SKU",
        "unit": "Unidad",
        "of": "de",
        "titular": "A nombre de",
        "issued": "Fecha de emisión",
        "image_unavailable": "Imagen no disponible",
        "signature_unavailable": "Firma no disponible",
        "qr_unavailable": "Código QR no disponible",
        "banner_unavailable": "Imagen de marca no disponible",
        "signatures": ("Dirección de Arte", "Curaduría"),
        "months": ("enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
                   "agosto", "septiembre", "octubre", "noviembre", "diciembre"),
    },
    "en": {
        "title": "CERTIFICATE OF AUTHENTICITY",
        "order": "Order",
        "code": "Code",
        "statement": "This certifies the authenticity of:",
        "sku": "SKU",
        "unit": "Unit",
        "of": "of",
        "titular": "Issued to",
        "issued": "Date of issue",
        "image_unavailable": "Image unavailable",
        "signature_unavailable": "Signature unavailable",
        "qr_unavailable": "QR code unavailable",
        "banner_unavailable": "Brand banner unavailable",
        "signatures": ("Art Direction", "Curation"),
        "months": ("January", "February", "March", "April", "May", "June", "July",
                   "August", "September", "October", "November", "December"),
    },
}


def labels_for(language):
    return LABELS.get(language, LABELS["es"])


@dataclass(frozen=True)
class PageParams:
    """Everything printed on one certificate page."""
    brand: str
    order_name: str
    code: str
    title: str
    sku: str
    unit_index: int
    unit_count: Optional[int] = None
    titular: Optional[str] = None
    image_url: Optional[str] = None
    issued_on: Optional[date] = None


@dataclass(frozen=True)
class TextLine:
    """A single centered line; ``y`` is the baseline."""
    text: str
    y: float
    fontsize: float
    fontname: str = FONT_REGULAR
    color: Tuple[float, float, float] = DARK


@dataclass(frozen=True)
class SignatureLine:
    start: fitz.Point
    end: fitz.Point
    caption: TextLine


@dataclass
class PageLayout:
    frame: List[fitz.Rect]
    header: List[TextLine]
    body: List[TextLine]
    image_box: fitz.Rect
    qr_rect: fitz.Rect
    url_line: TextLine
    banners: Optional[Tuple[fitz.Rect, fitz.Rect]] = None
    signatures: List[SignatureLine] = field(default_factory=list)

    @property
    def texts(self):
        return self.header + self.body + [self.url_line] + [s.caption for s in self.signatures]


# ─────────────────────────────────────────────────────────────
# Text measurement
# ─────────────────────────────────────────────────────────────

def content_width(page_rect):
    return page_rect.width - 2 * CONTENT_MARGIN


def fit_text(text, fontname, fontsize, max_width):
    """
    Shrink the font until the text fits max_width (never below MIN_FONT_SIZE).

    Returns (fontsize, text_width).
    """
    size = fontsize
    width = fitz.get_text_length(text, fontname=fontname, fontsize=size)
    for _ in range(30):
        if width <= max_width or size <= MIN_FONT_SIZE:
            break
        size = max(MIN_FONT_SIZE, size * 0.93)
        width = fitz.get_text_length(text, fontname=fontname, fontsize=size)
    return size, width


def centered_x(page_rect, text_width):
    return page_rect.x0 + (page_rect.width - text_width) / 2.0


def needs_unicode_font(text):
    """Base-14 fonts only cover Latin-1."""
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        return True
    return False


def css_color(color):
    return "#" + "".join(f"{round(c * 255):02x}" for c in color)


def format_issue_date(day, labels):
    return f"{day.day} {labels['months'][day.month - 1]} {day.year}"


# ─────────────────────────────────────────────────────────────
# Blocks
# ─────────────────────────────────────────────────────────────

def banner_block(page_rect):
    """Full-width header band at the top and footer band at the bottom."""
    header = fitz.Rect(page_rect.x0, page_rect.y0, page_rect.x1, page_rect.y0 + HEADER_BAND)
    footer = fitz.Rect(page_rect.x0, page_rect.y1 - FOOTER_BAND, page_rect.x1, page_rect.y1)
    return header, footer


def frame_block(page_rect):
    """Outer border and a thin inner border."""
    outer = fitz.Rect(page_rect.x0 + FRAME_MARGIN, page_rect.y0 + FRAME_MARGIN,
                      page_rect.x1 - FRAME_MARGIN, page_rect.y1 - FRAME_MARGIN)
    inner = fitz.Rect(outer.x0 + FRAME_GAP, outer.y0 + FRAME_GAP,
                      outer.x1 - FRAME_GAP, outer.y1 - FRAME_GAP)
    return [outer, inner]


def header_block(page_rect, params, labels):
    top = page_rect.y0
    return [
        TextLine(params.brand, top + 95, 14, FONT_BOLD, MUTED),
        TextLine(labels["title"], top + 130, 24, FONT_BOLD, DARK),
        TextLine(f"{labels['order']} {params.order_name}  |  {labels['code']} {params.code}",
                 top + 155, 11, FONT_REGULAR, MUTED),
    ]


def body_block(page_rect, params, labels):
    y = page_rect.y0 + 200
    lines = [TextLine(labels["statement"], y, 13, FONT_REGULAR, DARK)]
    y += 30
    lines.append(TextLine(f"\"{params.title}\"", y, 18, FONT_BOLD, INK))
    y += 24
    if params.sku:
        lines.append(TextLine(f"{labels['sku']}: {params.sku}", y, 11, FONT_REGULAR, MUTED))
        y += 18
    unit = f"{labels['unit']} {params.unit_index}"
    if params.unit_count:
        unit += f" {labels['of']} {params.unit_count}"
    lines.append(TextLine(unit, y, 11, FONT_REGULAR, MUTED))
    y += 18
    if params.titular:
        lines.append(TextLine(f"{labels['titular']}: {params.titular}", y, 13, FONT_REGULAR, DARK))
        y += 20
    if params.issued_on:
        lines.append(TextLine(f"{labels['issued']}: {format_issue_date(params.issued_on, labels)}",
                              y, 10, FONT_REGULAR, MUTED))
    return lines


def image_block(page_rect):
    width, height = IMAGE_BOX_SIZE
    x0 = centered_x(page_rect, width)
    y0 = page_rect.y0 + IMAGE_BOX_TOP
    return fitz.Rect(x0, y0, x0 + width, y0 + height)


def fit_image(box, width, height):
    """Largest rect with the image's aspect ratio that fits in box, centered."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image dimensions {width}x{height}")
    scale = min(box.width / width, box.height / height)
    w, h = width * scale, height * scale
    x0 = box.x0 + (box.width - w) / 2.0
    y0 = box.y0 + (box.height - h) / 2.0
    return fitz.Rect(x0, y0, x0 + w, y0 + h)


def qr_block(page_rect, image_rect, verification_url):
    x0 = centered_x(page_rect, QR_SIZE)
    y0 = image_rect.y1 + QR_GAP
    qr_rect = fitz.Rect(x0, y0, x0 + QR_SIZE, y0 + QR_SIZE)
    url_line = TextLine(verification_url, qr_rect.y1 + 14, 8, FONT_REGULAR, MUTED)
    return qr_rect, url_line


def signature_block(page_rect, labels):
    y = page_rect.y1 - SIGNATURE_BOTTOM
    center = page_rect.x0 + page_rect.width / 2.0
    lines = []
    for offset, caption in zip((-SIGNATURE_OFFSET, SIGNATURE_OFFSET), labels["signatures"]):
        cx = center + offset
        lines.append(SignatureLine(
            start=fitz.Point(cx - SIGNATURE_WIDTH / 2.0, y),
            end=fitz.Point(cx + SIGNATURE_WIDTH / 2.0, y),
            caption=TextLine(caption, y + 14, 10, FONT_BOLD, DARK),
        ))
    return lines


def compose_page(page_rect, params, labels, verification_url):
    image_box = image_block(page_rect)
    qr_rect, url_line = qr_block(page_rect, image_box, verification_url)
    return PageLayout(
        frame=frame_block(page_rect),
        header=header_block(page_rect, params, labels),
        body=body_block(page_rect, params, labels),
        image_box=image_box,
        qr_rect=qr_rect,
        url_line=url_line,
        banners=banner_block(page_rect),
        signatures=signature_block(page_rect, labels),
    )
