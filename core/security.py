import base64
import hashlib
import hmac
import logging
from typing import Optional

from core.config import Settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Mindbody-Signature"
SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Mindbody signs the raw request body with HMAC-SHA256, base64 encoded."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return SIGNATURE_PREFIX + base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(settings: Settings, body: bytes, signature: Optional[str]) -> bool:
    """
    Returns True when the request may be processed.

    Verification only runs when MINDBODY_VERIFY_SIGNATURE is on and a secret is
    configured; otherwise every request is accepted.
    """
    if not settings.mindbody_verify_signature:
        return True

    secret = settings.mindbody_webhook_secret
    if not secret:
        logger.warning("⚠️ Signature verification enabled but MINDBODY_WEBHOOK_SECRET is not set")
        return True

    if not signature:
        logger.warning("🚫 Webhook rejected: missing %s header", SIGNATURE_HEADER)
        return False

    expected = compute_signature(secret, body)
    # bytes compare: compare_digest rejects non-ASCII str
    received = signature.strip().encode("utf-8", "surrogateescape")
    if not hmac.compare_digest(expected.encode("ascii"), received):
        logger.warning("🚫 Webhook rejected: signature mismatch")
        return False

    return True
