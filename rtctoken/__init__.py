"""
rtctoken - Short-lived signed room credentials for RTC platforms.

This package manufactures "token04" credentials a client presents to a
real-time-communication platform to join an audio/video room, without ever
exposing the shared server secret to the client.
"""

__version__ = "1.0.0"

# Core issuance/verification
from .issuer import CredentialIssuer, IssuedCredential, issue, issue_record, issuer_from_env
from .verifier import CredentialVerifier, verify
from .encoding import TokenVariant
from .metrics import CredentialMetrics, get_metrics

# Records and secrets
from .record import CredentialRecord, Privilege, room_payload
from .secret import NormalizedSecret, normalize
from .secret_store import (
    SecretProvider,
    StaticSecretProvider,
    EnvSecretProvider,
    CachedSecretProvider,
)

# Errors
from .errors import (
    CredentialError,
    InvalidArgument,
    ConfigurationError,
    SecretNotConfigured,
    SecretMalformed,
    SecretProblem,
    SigningFailed,
    VerificationError,
    TokenMalformed,
    InvalidSignature,
    TokenExpired,
    SubjectMismatch,
)


# Optional pieces (lazy imports so jwcrypto loads only when JWTs are used)
def __getattr__(name):
    """Lazy loading of optional features."""
    if name in ("JwtAccessTokenIssuer", "jwt_issuer_from_env"):
        from . import jwt_token

        return getattr(jwt_token, name)
    elif name in ("RoomTokenService", "TokenRequest", "ServiceError"):
        from . import service

        return getattr(service, name)
    raise AttributeError(f"module 'rtctoken' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Core
    "CredentialIssuer",
    "IssuedCredential",
    "issue",
    "issue_record",
    "issuer_from_env",
    "CredentialVerifier",
    "verify",
    "TokenVariant",
    "CredentialMetrics",
    "get_metrics",
    # Records and secrets
    "CredentialRecord",
    "Privilege",
    "room_payload",
    "NormalizedSecret",
    "normalize",
    "SecretProvider",
    "StaticSecretProvider",
    "EnvSecretProvider",
    "CachedSecretProvider",
    # Errors
    "CredentialError",
    "InvalidArgument",
    "ConfigurationError",
    "SecretNotConfigured",
    "SecretMalformed",
    "SecretProblem",
    "SigningFailed",
    "VerificationError",
    "TokenMalformed",
    "InvalidSignature",
    "TokenExpired",
    "SubjectMismatch",
    # Optional (lazy loaded)
    "JwtAccessTokenIssuer",
    "RoomTokenService",
    "TokenRequest",
    "ServiceError",
    "jwt_issuer_from_env",
]
