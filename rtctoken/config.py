# rtctoken/config.py
"""
Centralized configuration for RTC token issuance.

All configurable values are read from environment variables with sensible defaults.
The server secret itself is not read here; only the name of the variable that
holds it. Secret retrieval goes through rtctoken.secret_store.

Usage:
    from rtctoken.config import DEFAULT_TTL_SECONDS, MAX_TTL_SECONDS

Environment Variables:
    RTCTOKEN_APP_ID: Tenant application ID on the RTC platform (no default)
    RTCTOKEN_SERVER_SECRET: Shared server secret (32 hex characters)
    RTCTOKEN_VARIANT: Token encoding, "split" or "blob" (no default, must be chosen)
    RTCTOKEN_DEFAULT_TTL: Default token lifetime in seconds (default: 3600)
    RTCTOKEN_MAX_TTL: Upper bound for requested lifetimes (default: 86400)
"""

import os
from typing import Any, Dict, Final, Optional

# =============================================================================
# Protocol Constants
# =============================================================================

# Wire-format generation tag written into every record
PROTOCOL_VERSION: Final[str] = "04"

# Nonces are drawn from [0, NONCE_UPPER_BOUND)
NONCE_UPPER_BOUND: Final[int] = 2**31 - 1

# =============================================================================
# Issuance Configuration
# =============================================================================

APP_ID: Final[Optional[str]] = os.getenv("RTCTOKEN_APP_ID")

# Name of the environment variable holding the server secret
SECRET_ENV_VAR: Final[str] = os.getenv("RTCTOKEN_SECRET_ENV_VAR", "RTCTOKEN_SERVER_SECRET")

# Encoding variant. Deliberately has no default: issuer and the platform-side
# verifier must agree, so the deployment has to name one.
TOKEN_VARIANT: Final[Optional[str]] = os.getenv("RTCTOKEN_VARIANT")

DEFAULT_TTL_SECONDS: Final[int] = int(os.getenv("RTCTOKEN_DEFAULT_TTL", "3600"))

MAX_TTL_SECONDS: Final[int] = int(os.getenv("RTCTOKEN_MAX_TTL", "86400"))

SECRET_LENGTH: Final[int] = int(os.getenv("RTCTOKEN_SECRET_LENGTH", "32"))

# How long a fetched secret is reused before the store is read again
SECRET_CACHE_TTL_SECONDS: Final[int] = int(os.getenv("RTCTOKEN_SECRET_CACHE_TTL", "300"))

# =============================================================================
# VideoSDK JWT Configuration
# =============================================================================

VIDEOSDK_API_KEY_ENV_VAR: Final[str] = "VIDEOSDK_API_KEY"
VIDEOSDK_SECRET_ENV_VAR: Final[str] = "VIDEOSDK_SECRET"
VIDEOSDK_SECRET_LENGTH: Final[int] = 64
VIDEOSDK_TTL_SECONDS: Final[int] = int(os.getenv("VIDEOSDK_TTL", "86400"))


# =============================================================================
# Configuration Summary (for debugging)
# =============================================================================


def describe_config() -> Dict[str, Any]:
    """
    Return the current non-secret settings.

    The secret is reported only as "set" or "unset".
    """
    return {
        "PROTOCOL_VERSION": PROTOCOL_VERSION,
        "APP_ID": APP_ID or "unset",
        "SECRET_ENV_VAR": SECRET_ENV_VAR,
        "SECRET": "set" if os.getenv(SECRET_ENV_VAR) else "unset",
        "TOKEN_VARIANT": TOKEN_VARIANT or "unset",
        "DEFAULT_TTL_SECONDS": DEFAULT_TTL_SECONDS,
        "MAX_TTL_SECONDS": MAX_TTL_SECONDS,
        "SECRET_LENGTH": SECRET_LENGTH,
        "SECRET_CACHE_TTL_SECONDS": SECRET_CACHE_TTL_SECONDS,
        "VIDEOSDK_API_KEY": "set" if os.getenv(VIDEOSDK_API_KEY_ENV_VAR) else "unset",
        "VIDEOSDK_SECRET": "set" if os.getenv(VIDEOSDK_SECRET_ENV_VAR) else "unset",
    }


def print_config() -> None:
    """Print current configuration (useful for debugging)."""
    print("RTC Token Configuration:")
    for name, value in describe_config().items():
        print(f"  {name + ':':<26}{value}")


if __name__ == "__main__":
    print_config()
