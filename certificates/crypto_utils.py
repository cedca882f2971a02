"""
Deterministic certificate codes.

A code can be re-derived at any time from the order id, the line item id and
the unit index, so verification never needs a database of issued certificates.
"""
import hashlib


CODE_LENGTH = 10


def canonical_string(order_id, line_item_id, unit_index):
    """Pipe-joined identity fields used as hash input. None becomes ''."""
    parts = ["" if value is None else str(value) for value in (order_id, line_item_id, unit_index)]
    return "|".join(parts)


def generate_certificate_code(order_id, line_item_id, unit_index, prefix="RR"):
    """
    Return the code for one certificate unit, e.g. ``RR-3F9A0C21BE``.

    SHA-256 of the canonical string, uppercase hex, truncated to CODE_LENGTH.
    """
    canonical = canonical_string(order_id, line_item_id, unit_index)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest().upper()
    return f"{prefix}-{digest[:CODE_LENGTH]}"
