"""
Server secret normalization.

Secrets reach us through secret managers and environment variables, which
means they arrive with stray whitespace or the shell quotes someone pasted
along with them. normalize() cleans up the harmless cases and rejects
everything else with a diagnosis an operator can act on.
"""

import logging
import string
from dataclasses import dataclass, field
from typing import Optional

from rtctoken.errors import SecretMalformed, SecretNotConfigured, SecretProblem

logger = logging.getLogger(__name__)

_QUOTES = ("'", '"')
_HEX_DIGITS = frozenset(string.hexdigits)


def mask_secret(value: Optional[str]) -> str:
    """Return a log-safe preview: first two and last two characters."""
    if not value:
        return "<empty>"
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:2]}{'*' * (len(value) - 4)}{value[-2:]}"


@dataclass(frozen=True)
class NormalizedSecret:
    """A validated server secret. The value never appears in repr()."""

    value: str = field(repr=False)
    expected_length: int = 32

    @property
    def length(self) -> int:
        return len(self.value)

    @property
    def masked(self) -> str:
        return mask_secret(self.value)

    def key_bytes(self) -> bytes:
        """HMAC key material: the secret text as UTF-8, unmodified."""
        return self.value.encode("utf-8")


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1].strip()
    return value


def normalize(
    raw: Optional[str], expected_length: int = 32, require_hex: bool = True
) -> NormalizedSecret:
    """
    Clean and validate a raw server secret.

    Args:
        raw: The secret as read from the store (may be None or dirty).
        expected_length: Required length after cleanup.
        require_hex: Whether only hex digits are allowed.

    Returns:
        The validated NormalizedSecret.

    Raises:
        SecretNotConfigured: If the secret is absent or empty.
        SecretMalformed: If the cleaned secret has the wrong length or charset.
    """
    if raw is None or not raw.strip():
        raise SecretNotConfigured("Server secret is not configured")

    value = _strip_quotes(raw.strip())
    if not value:
        raise SecretNotConfigured("Server secret is empty after removing quotes")

    logger.debug(f"Normalizing secret: length={len(value)}, preview={mask_secret(value)}")

    if len(value) == expected_length + 2:
        edges = "quote characters at both ends" if value[0] in _QUOTES else "two extra characters"
        raise SecretMalformed(
            SecretProblem.LIKELY_QUOTED,
            f"Server secret has length {len(value)}, expected {expected_length}, "
            f"looks quoted ({edges})",
            length=len(value),
            expected_length=expected_length,
        )

    if len(value) != expected_length:
        raise SecretMalformed(
            SecretProblem.WRONG_LENGTH,
            f"Server secret has length {len(value)}, expected {expected_length}",
            length=len(value),
            expected_length=expected_length,
        )

    if require_hex:
        bad = sorted({c for c in value if c not in _HEX_DIGITS})
        if bad:
            raise SecretMalformed(
                SecretProblem.NON_HEX,
                f"Server secret contains {len(bad)} distinct non-hex character(s)",
                length=len(value),
                expected_length=expected_length,
            )

    return NormalizedSecret(value=value, expected_length=expected_length)
