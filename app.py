import logging
import re
import sys
from io import BytesIO

from flask import Flask, render_template, request, send_file

from certificates.certificate_generator import render_order
from certificates.config import load_settings
from certificates.errors import (
    InputValidationError,
    OrderAuthError,
    OrderLookupError,
    OrderNotFoundError,
    RenderError,
)
from certificates.image_fetcher import ImageFetcher
from certificates.order_client import OrderClient

logger = logging.getLogger(__name__)

SHOP_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.myshopify\.com$")


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def is_valid_shop(shop):
    return bool(SHOP_PATTERN.match(str(shop or "")))


def safe_filename(name):
    """Replace every run of characters outside [a-zA-Z0-9] with one hyphen."""
    return re.sub(r"[^a-zA-Z0-9]+", "-", str(name or ""))


def _error_page(brand, message, status):
    return render_template("error.html", brand=brand, message=message), status


# ─────────────────────────────────────────────────────────────
# App
# ─────────────────────────────────────────────────────────────

def create_app(settings=None, order_client=None, image_fetcher=None):
    settings = settings or load_settings()
    certificate = settings.certificate
    brand = certificate.brand

    if order_client is None:
        settings.require_order_service()
        order_client = OrderClient(
            settings.order_service_url,
            settings.internal_api_key,
            timeout_ms=settings.order_fetch_timeout_ms,
        )
    if image_fetcher is None:
        image_fetcher = ImageFetcher(timeout_ms=certificate.image_fetch_timeout_ms)

    app = Flask(__name__)
    app.config["CERT_SETTINGS"] = settings

    @app.route("/")
    def index():
        return render_template("index.html", brand=brand)

    @app.route("/generate", methods=["POST"])
    def generate():
        shop = (request.form.get("shop") or settings.default_shop or "").strip()
        order_name = (request.form.get("order_name") or "").strip()
        titular = (request.form.get("titular") or "").strip()

        if not order_name or not titular:
            return _error_page(brand, "Faltan datos en el formulario. Completa el número de orden y el nombre del titular.", 400)
        if not is_valid_shop(shop):
            return _error_page(brand, f"Tienda inválida: {shop or '(vacía)'}", 400)

        try:
            order = order_client.fetch_order(shop, order_name)
        except OrderNotFoundError as e:
            logger.warning("Order %s not found for %s: %s", order_name, shop, e)
            return _error_page(brand, str(e), 404)
        except OrderAuthError as e:
            logger.error("Order service rejected credentials for %s: %s", shop, e)
            return _error_page(brand, str(e), 502)
        except OrderLookupError as e:
            logger.error("Order lookup failed for %s %s: %s", shop, order_name, e)
            return _error_page(brand, str(e), 502)

        buf = BytesIO()
        try:
            pages = render_order(order, titular, buf, config=certificate, image_fetcher=image_fetcher)
        except InputValidationError as e:
            return _error_page(brand, str(e), 400)
        except RenderError as e:
            logger.exception("[POST /generate] error")
            return _error_page(brand, str(e), 500)
        except Exception as e:
            logger.exception("[POST /generate] unexpected error rendering order %s", order.name or order_name)
            return _error_page(brand, f"Error inesperado al generar el certificado: {e}", 500)

        buf.seek(0)
        logger.info("Sending %d-page certificate for order %s", pages, order.name or order_name)
        return send_file(
            buf,
            mimetype="application/pdf",
            as_attachment=True,
            download_name=f"Certificado-{safe_filename(order.name or order_name)}.pdf",
        )

    @app.route("/healthz")
    def healthz():
        return "ok"

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    settings = load_settings()
    create_app(settings).run(host="0.0.0.0", port=settings.port)
