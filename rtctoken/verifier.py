"""
RTC Token Verifier - checks tokens produced by CredentialIssuer.

In production the RTC platform verifies tokens itself. This verifier exists
so issuance can be checked end to end, and for services that want to accept
the same credentials.

Checks run in a fixed order:

    decode -> signature (constant time) -> parse record -> expiry -> subject

The signature is checked before the record is parsed, so a tampered record
surfaces as InvalidSignature rather than as a parse error.
"""

import time
import logging
from typing import Callable, Optional, Tuple, Union

from rtctoken import config
from rtctoken.encoding import TokenVariant, decode
from rtctoken.errors import (
    SubjectMismatch,
    TokenExpired,
    VerificationError,
)
from rtctoken.metrics import CredentialMetrics
from rtctoken.record import CredentialRecord, parse
from rtctoken.secret import normalize
from rtctoken.secret_store import SecretProvider, StaticSecretProvider
from rtctoken.signer import Signer

logger = logging.getLogger(__name__)


class CredentialVerifier:
    """
    Verifies RTC room credentials.

    Example:
        >>> verifier = CredentialVerifier(secret, TokenVariant.BLOB)
        >>> record = verifier.verify(token, expected_subject="u-42")
        >>>
        >>> # Or without exceptions
        >>> ok, result = verifier.check(token, expected_subject="u-42")
    """

    def __init__(
        self,
        secret: Union[str, SecretProvider, None],
        variant: Union[TokenVariant, str],
        *,
        expected_secret_length: int = config.SECRET_LENGTH,
        clock: Callable[[], float] = time.time,
        metrics: Optional[CredentialMetrics] = None,
    ):
        """
        Initialize the verifier.

        Args:
            secret: Raw secret string or a SecretProvider.
            variant: Token encoding; must match the issuer's.
            expected_secret_length: Secret length after normalization.
            clock: Returns the current Unix time when verify() gets no ``now``.
            metrics: Optional metrics collector.
        """
        self.variant = TokenVariant.parse(variant)
        self.expected_secret_length = expected_secret_length
        self._provider = secret if isinstance(secret, SecretProvider) else StaticSecretProvider(secret)
        self._clock = clock
        self._metrics = metrics

    def verify(
        self, token: str, expected_subject: str, now: Optional[int] = None
    ) -> CredentialRecord:
        """
        Verify a token and return its record.

        Args:
            token: The token string.
            expected_subject: The identity the token must be bound to.
            now: Unix time to check expiry against (defaults to the clock).

        Returns:
            The decoded CredentialRecord.

        Raises:
            SecretNotConfigured, SecretMalformed: If the secret is unusable.
            TokenMalformed: If the token does not parse under this variant.
            InvalidSignature: If the signature does not match.
            TokenExpired: If ``now >= expire_at``.
            SubjectMismatch: If the token belongs to another subject.
        """
        signer = Signer(
            normalize(self._provider.get_secret(), expected_length=self.expected_secret_length)
        )
        try:
            record = self._verify(signer, token, expected_subject, now)
        except VerificationError as e:
            logger.info(f"Rejected credential: {type(e).__name__}: {e}")
            if self._metrics is not None:
                self._metrics.record_verification(type(e).__name__)
            raise

        if self._metrics is not None:
            self._metrics.record_verification("ok")
        return record

    def _verify(
        self, signer: Signer, token: str, expected_subject: str, now: Optional[int]
    ) -> CredentialRecord:
        canonical, signature = decode(self.variant, token)
        signer.verify(canonical, signature)
        record = parse(canonical)

        current = int(self._clock()) if now is None else now
        if current >= record.expire_at:
            raise TokenExpired(f"Credential expired at {record.expire_at} (now {current})")

        if record.subject_id != expected_subject:
            raise SubjectMismatch("Credential was issued to a different subject")

        return record

    def check(
        self, token: str, expected_subject: str, now: Optional[int] = None
    ) -> Tuple[bool, Union[CredentialRecord, str]]:
        """
        Non-raising form of verify().

        Returns:
            (True, record) on success, or (False, reason) where reason is
            the error class name, e.g. "TokenExpired".
        """
        try:
            return True, self.verify(token, expected_subject, now)
        except VerificationError as e:
            return False, type(e).__name__


def verify(
    token: str,
    secret_raw: Optional[str],
    expected_subject: str,
    now: Optional[int] = None,
    *,
    variant: Union[TokenVariant, str],
) -> CredentialRecord:
    """One-shot verification. See CredentialVerifier.verify()."""
    return CredentialVerifier(secret_raw, variant).verify(token, expected_subject, now)
