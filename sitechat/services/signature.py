"""HMAC-SHA256 signatures for the automation channel.

Header format is ``sha256=<lowercase hex digest>`` computed over the exact
request body bytes. Without a configured secret the channel runs
unauthenticated: nothing is signed and nothing is verified.
"""

import hashlib
import hmac
import json
from typing import Any, Optional

SIGNATURE_HEADER = "x-make-signature"
SIGNATURE_PREFIX = "sha256="


def canonical_json(payload: Any) -> bytes:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def compute_signature(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


class SignatureCodec:
    def __init__(self, secret: Optional[str] = None):
        self.secret = secret or None

    @property
    def enabled(self) -> bool:
        return self.secret is not None

    def sign(self, body: bytes) -> Optional[str]:
        if not self.enabled:
            return None
        return compute_signature(self.secret, body)

    def verify(self, body: bytes, header: Optional[str]) -> bool:
        """Check an asserted signature in constant time. Always true when disabled."""
        if not self.enabled:
            return True
        if not header or not header.startswith(SIGNATURE_PREFIX):
            return False
        expected = compute_signature(self.secret, body)
        return hmac.compare_digest(expected.encode("utf-8"), header.strip().encode("utf-8"))
