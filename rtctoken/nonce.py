"""Per-issuance nonce generation."""

import secrets

from rtctoken.config import NONCE_UPPER_BOUND


def generate_nonce() -> int:
    """
    Draw a fresh nonce from the operating system CSPRNG.

    Each call is an independent draw; no generator state is shared between
    issuances, so concurrent calls need no locking.
    """
    return secrets.randbelow(NONCE_UPPER_BOUND)
