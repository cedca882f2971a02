"""
Exceptions raised while looking up orders and rendering certificates.
"""


class CertificateError(Exception):
    """Base exception for the certificate service."""


class ConfigurationError(CertificateError):
    """Raised when required settings are missing or malformed."""


class InputValidationError(CertificateError):
    """Raised when request input is missing or invalid."""


class OrderLookupError(CertificateError):
    """Raised when the order service cannot return an order."""


class OrderNotFoundError(OrderLookupError):
    pass


class OrderAuthError(OrderLookupError):
    pass


class ImageUnavailableError(CertificateError):
    """Raised when a product image cannot be embedded in a page."""


class ImageFetchError(ImageUnavailableError):
    pass


class UnsupportedImageError(ImageUnavailableError):
    pass


class ImageDecodeError(ImageUnavailableError):
    pass


class RenderError(CertificateError):
    """Raised when the PDF document cannot be encoded or written."""
