"""
RTC Token Signer - HMAC-SHA256 over canonical record bytes.

The Signer is constructed once per secret and reused across issuances. It
holds no per-call state, so one instance can serve concurrent requests.
"""

import logging

from cryptography.exceptions import InvalidSignature as _PrimitiveInvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from rtctoken.errors import InvalidSignature, SigningFailed
from rtctoken.secret import NormalizedSecret

logger = logging.getLogger(__name__)

DIGEST_SIZE = 32


class Signer:
    """
    Computes and checks HMAC-SHA256 signatures with a normalized secret.

    Example:
        >>> signer = Signer(normalize(os.environ["RTCTOKEN_SERVER_SECRET"]))
        >>> signature = signer.sign(record.to_canonical_bytes())
    """

    def __init__(self, secret: NormalizedSecret):
        """
        Initialize the Signer.

        Args:
            secret: A secret that already passed normalization.

        Raises:
            TypeError: If secret is a raw string instead of a NormalizedSecret.
        """
        if not isinstance(secret, NormalizedSecret):
            raise TypeError("Signer requires a NormalizedSecret; run normalize() first")
        self._key = secret.key_bytes()
        self.secret_length = secret.length

    def _mac(self) -> hmac.HMAC:
        return hmac.HMAC(self._key, hashes.SHA256())

    def sign(self, message: bytes) -> bytes:
        """
        Sign message bytes.

        Returns:
            The raw 32-byte digest.

        Raises:
            SigningFailed: If the primitive fails. This indicates a bug, not
                bad input.
        """
        try:
            mac = self._mac()
            mac.update(message)
            signature = mac.finalize()
        except Exception as e:
            logger.critical(f"HMAC signing failed on validated input: {e}")
            raise SigningFailed(f"HMAC signing failed: {e}") from e

        if len(signature) != DIGEST_SIZE:
            logger.critical(f"HMAC produced {len(signature)} bytes, expected {DIGEST_SIZE}")
            raise SigningFailed("HMAC produced a digest of unexpected size")
        return signature

    def verify(self, message: bytes, signature: bytes) -> None:
        """
        Check a signature in constant time.

        Raises:
            InvalidSignature: If the signature does not match.
        """
        mac = self._mac()
        mac.update(message)
        try:
            mac.verify(signature)
        except _PrimitiveInvalidSignature:
            raise InvalidSignature("Token signature does not match") from None
