"""AES-GCM encryption of national registration numbers.

Only the masked form is ever displayed; the encrypted form is what a
persistence collaborator stores. Never log keys or plaintext.
"""

import base64
import hashlib
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from sonoreport.config import settings
from sonoreport.core.identity import mask_national_id
from sonoreport.models.schemas import SecureNationalIdResponse

TOKEN_VERSION = "v1"
NONCE_BYTES = 12


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class NationalIdVault:
    """Encrypt/decrypt national IDs with a key derived from a shared secret."""

    def __init__(self, secret: Optional[str] = None):
        secret = secret if secret is not None else settings.rrn_encryption_secret
        if not secret:
            raise RuntimeError("Missing RRN_ENCRYPTION_SECRET")
        # SHA-256 of the secret gives the 32-byte AES-256 key
        self._aesgcm = AESGCM(hashlib.sha256(secret.encode("utf-8")).digest())

    def encrypt(self, national_id: str) -> str:
        """Return "v1:{nonce}:{ciphertext}:{tag}", each part base64."""
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._aesgcm.encrypt(nonce, national_id.encode("utf-8"), None)
        # AESGCM appends the 16-byte tag to the ciphertext
        ciphertext, tag = sealed[:-16], sealed[-16:]
        return ":".join([TOKEN_VERSION, _b64(nonce), _b64(ciphertext), _b64(tag)])

    def decrypt(self, token: str) -> str:
        parts = token.split(":")
        if len(parts) != 4 or parts[0] != TOKEN_VERSION:
            raise ValueError("Unsupported national ID token format")
        try:
            nonce, ciphertext, tag = (base64.b64decode(part, validate=True) for part in parts[1:])
            plaintext = self._aesgcm.decrypt(nonce, ciphertext + tag, None)
        except (InvalidTag, ValueError) as exc:
            raise ValueError("Failed to decrypt national ID") from exc
        return plaintext.decode("utf-8")

    def protect(self, national_id: Optional[str]) -> SecureNationalIdResponse:
        """Masked display form plus encrypted storage form; both empty for blank input."""
        trimmed = (national_id or "").strip()
        if not trimmed:
            return SecureNationalIdResponse(masked="", encrypted="")
        return SecureNationalIdResponse(
            masked=mask_national_id(trimmed),
            encrypted=self.encrypt(trimmed),
        )
