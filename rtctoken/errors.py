"""
RTC Token Errors.

Every failure the credential pipeline can produce is a CredentialError
subclass. The ``kind`` attribute groups them the way a request handler needs
to report them:

- ``configuration``: the server secret or settings are missing or broken.
  An operator has to fix it, the client did nothing wrong.
- ``caller``: the request carried a missing or invalid field.
- ``internal``: the signing primitive failed on validated inputs (a bug).
- ``verification``: a presented token was rejected.

Nothing here is retryable: every failure is deterministic for its inputs.
"""

from enum import Enum
from typing import Optional


class SecretProblem(str, Enum):
    """Why a server secret was rejected after normalization."""

    LIKELY_QUOTED = "likely_quoted"
    WRONG_LENGTH = "wrong_length"
    NON_HEX = "non_hex"


class CredentialError(Exception):
    """Base class for all credential errors."""

    kind: str = "internal"
    retryable: bool = False


class InvalidArgument(CredentialError, ValueError):
    """A caller-supplied field is missing or invalid."""

    kind = "caller"


class ConfigurationError(CredentialError):
    """Server-side configuration is missing or invalid."""

    kind = "configuration"


class SecretNotConfigured(ConfigurationError):
    """The server secret is absent or empty."""


class SecretMalformed(ConfigurationError):
    """The server secret is present but does not have the expected shape."""

    def __init__(
        self,
        reason: SecretProblem,
        message: str,
        length: Optional[int] = None,
        expected_length: Optional[int] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.length = length
        self.expected_length = expected_length


class SigningFailed(CredentialError):
    """The HMAC primitive failed on validated inputs."""

    kind = "internal"


class VerificationError(CredentialError):
    """Base class for token rejections."""

    kind = "verification"


class TokenMalformed(VerificationError):
    """The token does not parse under the configured encoding variant."""


class InvalidSignature(VerificationError):
    """The token signature does not match its contents."""


class TokenExpired(VerificationError):
    """The token is past its expiry time."""


class SubjectMismatch(VerificationError):
    """The token was issued to a different subject."""
