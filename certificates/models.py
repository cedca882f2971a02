"""
Order data as returned by the order service, reduced to what certificates need.
"""
from dataclasses import dataclass
from typing import Optional, Tuple


UNTITLED = "Untitled product"


def coerce_quantity(value):
    """
    Quantity as a positive int. Zero, negative, non-numeric or missing
    values count as one unit.
    """
    if isinstance(value, bool):
        return 1
    try:
        quantity = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, quantity)


def _dig(data, *keys):
    """data[k1][k2]... or None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _nodes(connection):
    """Accept both a plain list and a GraphQL connection ({"edges": [{"node": ...}]})."""
    if isinstance(connection, list):
        return [item for item in connection if isinstance(item, dict)]
    if isinstance(connection, dict):
        edges = connection.get("edges") or []
        return [edge["node"] for edge in edges if isinstance(edge, dict) and isinstance(edge.get("node"), dict)]
    return []


@dataclass(frozen=True)
class LineItem:
    id: str
    title: str
    sku: str
    quantity: int
    image_url: Optional[str] = None

    @classmethod
    def from_payload(cls, node):
        image_url = (
            _dig(node, "variant", "image", "url")
            or _dig(node, "image", "url")
            or _dig(node, "product", "featuredImage", "url")
        )
        sku = node.get("sku") or _dig(node, "variant", "sku") or ""
        return cls(
            id=str(node.get("id") or ""),
            title=str(node.get("title") or node.get("name") or "").strip() or UNTITLED,
            sku=str(sku),
            quantity=coerce_quantity(node.get("quantity")),
            image_url=image_url or None,
        )


@dataclass(frozen=True)
class Order:
    id: str
    name: str
    line_items: Tuple[LineItem, ...]
    currency: str = ""
    created_at: Optional[str] = None

    @classmethod
    def from_payload(cls, data):
        line_items = tuple(
            LineItem.from_payload(node)
            for node in _nodes(data.get("lineItems", data.get("line_items")))
        )
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            line_items=line_items,
            currency=data.get("currencyCode") or data.get("currency") or "",
            created_at=data.get("createdAt") or data.get("created_at"),
        )

    @property
    def unit_count(self):
        return sum(item.quantity for item in self.line_items)


@dataclass(frozen=True)
class CertificateUnit:
    """One physical item: a line item and its 1-based index within the quantity."""
    line_item: LineItem
    unit_index: int
    code: str

