"""
Token wire encodings.

Two incompatible layouts exist for the same protocol version "04":

    SPLIT (variant A):  b64(canonical) + "." + b64(signature)
    BLOB  (variant B):  b64(canonical + "." + hex(signature))

Both use the standard base64 alphabet with padding and lowercase hex, and
decoding accepts only the exact string encode() would produce. A decoder only
ever accepts its own variant; a token that does not parse is rejected rather
than retried under the other layout.
"""

import base64
import binascii
from enum import Enum
from typing import Tuple

from rtctoken.errors import ConfigurationError, TokenMalformed
from rtctoken.signer import DIGEST_SIZE


class TokenVariant(str, Enum):
    """Token encoding variant. Issuer and verifier must use the same one."""

    SPLIT = "split"
    BLOB = "blob"

    @classmethod
    def parse(cls, value) -> "TokenVariant":
        """
        Resolve a configured variant name.

        Accepts "split"/"a" and "blob"/"b" in any case, or a TokenVariant.

        Raises:
            ConfigurationError: If the value names no variant.
        """
        if isinstance(value, cls):
            return value
        aliases = {"split": cls.SPLIT, "a": cls.SPLIT, "blob": cls.BLOB, "b": cls.BLOB}
        key = str(value or "").strip().lower()
        if key not in aliases:
            raise ConfigurationError(
                f"Unknown token variant {value!r}; expected 'split' or 'blob'"
            )
        return aliases[key]


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: str, what: str) -> bytes:
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as e:
        raise TokenMalformed(f"{what} is not valid base64: {e}") from e


def encode(variant: TokenVariant, canonical: bytes, signature: bytes) -> str:
    """Assemble the token string for the given variant."""
    variant = TokenVariant.parse(variant)
    if variant is TokenVariant.SPLIT:
        return f"{_b64encode(canonical)}.{_b64encode(signature)}"
    return _b64encode(canonical + b"." + signature.hex().encode("ascii"))


def decode(variant: TokenVariant, token: str) -> Tuple[bytes, bytes]:
    """
    Split a token into canonical record bytes and raw signature bytes.

    Raises:
        TokenMalformed: If the token does not parse under this variant.
    """
    variant = TokenVariant.parse(variant)
    if not isinstance(token, str) or not token:
        raise TokenMalformed("Token is empty")

    if variant is TokenVariant.SPLIT:
        parts = token.split(".")
        if len(parts) != 2:
            raise TokenMalformed(f"Split token must have 2 parts, found {len(parts)}")
        canonical = _b64decode(parts[0], "Record part")
        signature = _b64decode(parts[1], "Signature part")
    else:
        blob = _b64decode(token, "Token")
        canonical, sep, sig_hex = blob.rpartition(b".")
        if not sep:
            raise TokenMalformed("Blob token has no signature separator")
        try:
            signature = binascii.unhexlify(sig_hex)
        except (binascii.Error, ValueError) as e:
            raise TokenMalformed(f"Signature is not valid hex: {e}") from e

    if not canonical:
        raise TokenMalformed("Token carries no record")
    if len(signature) != DIGEST_SIZE:
        raise TokenMalformed(f"Signature is {len(signature)} bytes, expected {DIGEST_SIZE}")
    # one credential has exactly one token string: no stray pad bits, lowercase hex
    if encode(variant, canonical, signature) != token:
        raise TokenMalformed("Token is not in canonical encoding")
    return canonical, signature
