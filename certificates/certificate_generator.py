"""
Certificate rendering: one PDF page per purchased unit of an order.

Pages are drawn from a PageLayout (see certificates.layout). Product image,
QR code, signature and banner failures are drawn as visible fallbacks and
never stop the page or the document.
"""
import html
import logging
import os
from datetime import date

import fitz

from certificates.config import CertificateConfig
from certificates.crypto_utils import generate_certificate_code
from certificates.errors import ImageFetchError, InputValidationError, RenderError
from certificates.layout import (
    DARK,
    ERROR,
    FONT_BOLD,
    FONT_REGULAR,
    MUTED,
    PageParams,
    TextLine,
    centered_x,
    compose_page,
    content_width,
    css_color,
    fit_image,
    fit_text,
    labels_for,
    needs_unicode_font,
)
from certificates.models import CertificateUnit
from certificates.qr_generator import build_verification_url, qr_png

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")


class CertificateDocument:
    """
    A PDF being built page by page.

    append_page() is called once per certificate, the first one included.
    """

    def __init__(self, width=PAGE_WIDTH, height=PAGE_HEIGHT):
        self.width = width
        self.height = height
        self._doc = fitz.open()

    def append_page(self):
        return self._doc.new_page(width=self.width, height=self.height)

    @property
    def page_count(self):
        return self._doc.page_count

    def write_to(self, sink):
        """Encode the document and write it to a binary stream."""
        sink.write(self._doc.tobytes(garbage=3, deflate=True))

    def close(self):
        if not self._doc.is_closed:
            self._doc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# ─────────────────────────────────────────────────────────────
# Single page
# ─────────────────────────────────────────────────────────────

class CertificateRenderer:

    def __init__(self, config=None, image_fetcher=None):
        self.config = config or CertificateConfig()
        self.image_fetcher = image_fetcher
        self.labels = labels_for(self.config.language)

    def render_page(self, page, params):
        """Draw one certificate onto an empty page."""
        page_rect = page.rect
        verification_url = build_verification_url(self.config.verify_base_url, params.code)
        layout = compose_page(page_rect, params, self.labels, verification_url)
        max_width = content_width(page_rect)

        if layout.banners:
            self._draw_banners(page, layout.banners)

        page.draw_rect(layout.frame[0], color=DARK, width=2)
        for rect in layout.frame[1:]:
            page.draw_rect(rect, color=MUTED, width=0.5)

        for line in layout.header + layout.body:
            self._draw_text(page, line, max_width)

        self._draw_product_image(page, layout.image_box, params.image_url)
        self._draw_qr(page, layout.qr_rect, verification_url)
        self._draw_text(page, layout.url_line, max_width)
        self._draw_signatures(page, layout.signatures)
        return layout

    @staticmethod
    def _draw_text(page, line, max_width, within=None):
        area = within if within is not None else page.rect
        if needs_unicode_font(line.text):
            CertificateRenderer._draw_unicode_text(page, line, max_width, area)
            return
        size, width = fit_text(line.text, line.fontname, line.fontsize, max_width)
        x = centered_x(area, width)
        page.insert_text((x, line.y), line.text, fontsize=size, fontname=line.fontname, color=line.color)

    @staticmethod
    def _draw_unicode_text(page, line, max_width, area):
        # outside Latin-1: let the HTML engine pick fallback fonts for missing glyphs
        x0 = area.x0 + (area.width - max_width) / 2.0
        box = fitz.Rect(x0, line.y - line.fontsize * 1.1, x0 + max_width, line.y + line.fontsize * 0.5)
        weight = "bold" if line.fontname == FONT_BOLD else "normal"
        css = (f"* {{font-family: sans-serif; font-size: {line.fontsize}px; font-weight: {weight}; "
               f"color: {css_color(line.color)}; text-align: center; margin: 0;}}")
        page.insert_htmlbox(box, html.escape(line.text), css=css, scale_low=0)

    def _draw_fallback(self, page, box, message):
        page.draw_rect(box, color=ERROR, width=1)
        line = TextLine(message, box.y0 + box.height / 2.0 + 4, 10, FONT_REGULAR, ERROR)
        self._draw_text(page, line, box.width - 8, within=box)

    def _draw_product_image(self, page, box, image_url):
        try:
            if self.image_fetcher is None:
                raise ImageFetchError("No image fetcher configured")
            if not image_url:
                raise ImageFetchError("Line item has no image")
            image = self.image_fetcher.fetch(image_url)
            page.insert_image(fit_image(box, image.width, image.height), stream=image.content)
        except Exception as e:
            logger.warning("Product image unavailable (%s): %s", image_url or "no url", e)
            self._draw_fallback(page, box, self.labels["image_unavailable"])

    def _draw_qr(self, page, rect, verification_url):
        try:
            page.insert_image(rect, stream=qr_png(verification_url))
        except Exception as e:
            logger.warning("Failed to add QR code for %s: %s", verification_url, e)
            self._draw_fallback(page, rect, self.labels["qr_unavailable"])

    def _insert_asset(self, page, rect, path, fallback_label, what):
        """Draw a local image asset into rect; a visible caption replaces it on failure."""
        try:
            if not os.path.exists(path):
                raise FileNotFoundError(f"{what} image not found: {path}")
            page.insert_image(rect, filename=path, keep_proportion=True)
        except Exception as e:
            logger.warning("Failed to add %s image: %s", what, e)
            line = TextLine(fallback_label, rect.y1 - 10, 9, FONT_REGULAR, ERROR)
            self._draw_text(page, line, min(rect.width, content_width(page.rect)), within=rect)

    def _draw_banners(self, page, banners):
        header, footer = banners
        if self.config.header_path:
            self._insert_asset(page, header, self.config.header_path, self.labels["banner_unavailable"], "header")
        if self.config.footer_path:
            self._insert_asset(page, footer, self.config.footer_path, self.labels["banner_unavailable"], "footer")

    def _draw_signatures(self, page, signatures):
        for signature in signatures:
            page.draw_line(signature.start, signature.end, color=DARK, width=0.8)
            self._draw_text(page, signature.caption, signature.end.x - signature.start.x,
                            within=fitz.Rect(signature.start.x, 0, signature.end.x, page.rect.y1))

        if self.config.signature_path and signatures:
            first = signatures[0]
            sig_rect = fitz.Rect(first.start.x, first.start.y - 55, first.end.x, first.start.y - 5)
            self._insert_asset(page, sig_rect, self.config.signature_path,
                               self.labels["signature_unavailable"], "signature")


# ─────────────────────────────────────────────────────────────
# Whole order
# ─────────────────────────────────────────────────────────────

def iter_certificate_units(order, prefix="RR"):
    """Line items in order, then units 1..quantity within each line item."""
    for item in order.line_items:
        for unit_index in range(1, item.quantity + 1):
            code = generate_certificate_code(order.id, item.id, unit_index, prefix=prefix)
            yield CertificateUnit(item, unit_index, code)


def render_order(order, titular, sink, config=None, image_fetcher=None, issued_on=None):
    """
    Render every certificate unit of the order and write the PDF to sink.

    Returns the number of pages written.
    """
    config = config or CertificateConfig()
    if not order.line_items:
        raise InputValidationError(f"Order {order.name or order.id} has no line items to certify")

    renderer = CertificateRenderer(config, image_fetcher)
    issued_on = issued_on or date.today()

    with CertificateDocument() as document:
        for unit in iter_certificate_units(order, config.code_prefix):
            params = PageParams(
                brand=config.brand,
                order_name=order.name,
                code=unit.code,
                title=unit.line_item.title,
                sku=unit.line_item.sku,
                unit_index=unit.unit_index,
                unit_count=unit.line_item.quantity,
                titular=titular or None,
                image_url=unit.line_item.image_url,
                issued_on=issued_on,
            )
            renderer.render_page(document.append_page(), params)

        pages = document.page_count
        try:
            document.write_to(sink)
        except Exception as e:
            raise RenderError(f"Failed to write certificate PDF for order {order.name}: {e}") from e

    logger.info("Rendered %d certificate pages for order %s", pages, order.name)
    return pages
