"""
Settings for the certificate service, read from the environment (and .env).
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from certificates.errors import ConfigurationError


@dataclass(frozen=True)
class CertificateConfig:
    """Options passed to the renderer and the pagination driver."""
    brand: str = "RITMODEREVER"
    verify_base_url: str = "http://localhost:3001"
    image_fetch_timeout_ms: int = 3000
    code_prefix: str = "RR"
    language: str = "es"
    signature_path: Optional[str] = None
    header_path: Optional[str] = None
    footer_path: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    port: int = 3001
    default_shop: str = ""
    order_service_url: Optional[str] = None
    internal_api_key: Optional[str] = None
    order_fetch_timeout_ms: int = 5000
    certificate: CertificateConfig = field(default_factory=CertificateConfig)

    def require_order_service(self):
        """Both the order service URL and its API key must be configured."""
        if not self.order_service_url:
            raise ConfigurationError("SHOPIFY_APP_URL must be set")
        if not self.internal_api_key:
            raise ConfigurationError("INTERNAL_API_KEY must be set")


def _get_int(env, name, default):
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _get_str(env, name, default=None):
    raw = (env.get(name) or "").strip()
    return raw or default


def load_settings(env=None):
    """
    Build Settings from a mapping of environment variables.

    With no mapping, .env is loaded into os.environ first (existing variables
    win) and os.environ is used.
    """
    if env is None:
        load_dotenv(os.path.join(os.getcwd(), ".env"))
        env = os.environ

    port = _get_int(env, "PORT", 3001)
    language = _get_str(env, "CERT_LANGUAGE", "es").lower()
    if language not in ("es", "en"):
        raise ConfigurationError(f"CERT_LANGUAGE must be 'es' or 'en', got {language!r}")

    certificate = CertificateConfig(
        brand=_get_str(env, "BRAND_NAME", "RITMODEREVER"),
        verify_base_url=_get_str(env, "VERIFY_BASE_URL", f"http://localhost:{port}"),
        image_fetch_timeout_ms=_get_int(env, "IMAGE_FETCH_TIMEOUT_MS", 3000),
        code_prefix=_get_str(env, "CERT_CODE_PREFIX", "RR"),
        language=language,
        signature_path=_get_str(env, "SIGNATURE_IMAGE"),
        header_path=_get_str(env, "HEADER_IMAGE"),
        footer_path=_get_str(env, "FOOTER_IMAGE"),
    )

    return Settings(
        port=port,
        default_shop=_get_str(env, "DEFAULT_SHOP", ""),
        order_service_url=_get_str(env, "SHOPIFY_APP_URL"),
        internal_api_key=_get_str(env, "INTERNAL_API_KEY"),
        order_fetch_timeout_ms=_get_int(env, "ORDER_FETCH_TIMEOUT_MS", 5000),
        certificate=certificate,
    )
