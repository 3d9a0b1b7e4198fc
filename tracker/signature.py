"""GitHub webhook signature verification.

GitHub signs each delivery with HMAC-SHA256 over the raw request body and
sends the digest as ``X-Hub-Signature-256: sha256=<hex>``. Verification must
run on the exact bytes received; re-serialized JSON does not round-trip.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

SIGNATURE_HEADER = "X-Hub-Signature-256"
_ALGORITHM = "sha256"


def sign_payload(body: bytes, secret: str) -> str:
    """Return the ``sha256=<hex>`` header value GitHub would send for body."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"{_ALGORITHM}={digest}"


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """Check a delivery signature. Fails closed and never raises."""
    if not signature or not secret:
        return False

    parts = signature.split("=")
    if len(parts) != 2 or parts[0] != _ALGORITHM:
        return False

    try:
        provided = bytes.fromhex(parts[1])
    except ValueError:
        return False

    expected = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return hmac.compare_digest(provided, expected)


def generate_webhook_secret() -> str:
    """Generate a per-repository webhook secret."""
    return secrets.token_hex(32)
