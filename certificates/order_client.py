"""
Client for the main shop app's internal order-data API.
"""
import json
import logging
from urllib.parse import urljoin

import requests

from certificates.errors import (
    InputValidationError,
    OrderAuthError,
    OrderLookupError,
    OrderNotFoundError,
)
from certificates.http_utils import deadline_after, read_body, remaining
from certificates.models import Order

logger = logging.getLogger(__name__)

ORDER_DATA_PATH = "/api/order-data"
MAX_ORDER_BYTES = 5 * 1024 * 1024


class OrderClient:
    """
    Looks up one order per call:

        GET <base_url>/api/order-data?shop=<shop>&order_name=<name>
        Authorization: <api_key>

    and expects ``{"ok": true, "data": {...}}`` back. The whole lookup must
    finish within timeout_ms.
    """

    def __init__(self, base_url, api_key, timeout_ms=5000, session=None, max_bytes=MAX_ORDER_BYTES):
        self.url = urljoin(base_url, ORDER_DATA_PATH)
        self.api_key = api_key
        self.timeout = max(timeout_ms, 1) / 1000.0
        self.max_bytes = max_bytes
        self.session = session or requests.Session()

    def fetch_order(self, shop, order_name):
        if not shop or not order_name:
            raise InputValidationError("shop and order_name are required")

        deadline = deadline_after(self.timeout)
        try:
            resp = self.session.get(
                self.url,
                params={"shop": shop, "order_name": order_name},
                headers={"Authorization": self.api_key},
                stream=True,
                timeout=remaining(deadline),
            )
        except requests.RequestException as e:
            raise OrderLookupError(f"Error querying order service: {e}") from e

        try:
            body = read_body(resp, deadline, self.max_bytes, OrderLookupError, "order service response")
        finally:
            resp.close()
        text = body.decode("utf-8", errors="replace")

        if resp.status_code == 404:
            raise OrderNotFoundError(f"Order {order_name} not found for {shop}")
        if resp.status_code in (401, 403):
            raise OrderAuthError(f"Order service rejected credentials: {resp.status_code} {text}")
        if not resp.ok:
            raise OrderLookupError(f"Error querying order service: {resp.status_code} {text}")

        try:
            payload = json.loads(text)
        except ValueError as e:
            raise OrderLookupError(f"Order service returned invalid JSON: {e}") from e

        if not isinstance(payload, dict) or not payload.get("ok") or not isinstance(payload.get("data"), dict):
            raise OrderNotFoundError(f"Order {order_name} was not returned by the order service")

        order = Order.from_payload(payload["data"])
        logger.info("Fetched order %s for %s with %d line items", order.name or order_name, shop, len(order.line_items))
        return order
