"""
RTC Token Issuer - manufactures short-lived signed room credentials.

This is the only component request handlers call. One issuance runs the
whole pipeline synchronously:

    secret -> normalize -> record -> canonical bytes -> HMAC -> encode

Any failure stops the pipeline and surfaces as a typed CredentialError; no
token is ever produced from a secret that failed validation.
"""

import json
import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from rtctoken import config
from rtctoken.encoding import TokenVariant, encode
from rtctoken.errors import ConfigurationError, CredentialError, InvalidArgument
from rtctoken.metrics import CredentialMetrics
from rtctoken.nonce import generate_nonce
from rtctoken.record import CredentialRecord, build_record, serialize
from rtctoken.secret import normalize
from rtctoken.secret_store import (
    CachedSecretProvider,
    EnvSecretProvider,
    SecretProvider,
    StaticSecretProvider,
)
from rtctoken.signer import Signer

logger = logging.getLogger(__name__)

PayloadLike = Union[str, Mapping[str, Any], None]


@dataclass(frozen=True)
class IssuedCredential:
    """A freshly issued token together with the record it encodes."""

    token: str
    record: CredentialRecord
    variant: TokenVariant


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _payload_text(payload: PayloadLike) -> str:
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, Mapping):
        try:
            return json.dumps(
                dict(payload), separators=(",", ":"), ensure_ascii=False, allow_nan=False
            )
        except (TypeError, ValueError) as e:
            raise InvalidArgument(f"payload mapping is not JSON serializable: {e}") from e
    raise InvalidArgument(f"payload must be a string or a mapping, got {type(payload).__name__}")


class CredentialIssuer:
    """
    Issues RTC room credentials for one tenant application.

    Construct once at process start and share it; issue() keeps no state
    between calls.

    Example:
        >>> issuer = CredentialIssuer(
        ...     app_id=128222087,
        ...     secret=EnvSecretProvider("RTCTOKEN_SERVER_SECRET"),
        ...     variant=TokenVariant.BLOB,
        ... )
        >>> token = issuer.issue("u-42", payload=room_payload("room-1"))
    """

    def __init__(
        self,
        app_id: int,
        secret: Union[str, SecretProvider, None],
        variant: Union[TokenVariant, str],
        *,
        default_ttl_seconds: int = config.DEFAULT_TTL_SECONDS,
        max_ttl_seconds: int = config.MAX_TTL_SECONDS,
        expected_secret_length: int = config.SECRET_LENGTH,
        clock: Callable[[], float] = time.time,
        nonce_source: Callable[[], int] = generate_nonce,
        metrics: Optional[CredentialMetrics] = None,
    ):
        """
        Initialize the issuer.

        Args:
            app_id: Tenant application ID. Must be an int, not a numeric string.
            secret: Raw secret string or a SecretProvider. Normalized on
                every issuance.
            variant: Token encoding. No default; must match the verifier.
            default_ttl_seconds: Lifetime used when the caller passes none.
            max_ttl_seconds: Longer requested lifetimes are clamped to this.
            expected_secret_length: Secret length after normalization.
            clock: Returns the current Unix time.
            nonce_source: Returns a fresh nonce per call.
            metrics: Optional metrics collector.

        Raises:
            InvalidArgument: If app_id is missing or not an integer.
            ConfigurationError: If the variant or TTL bounds are invalid.
        """
        if app_id is None:
            raise InvalidArgument("app_id is required")
        if not _is_int(app_id):
            raise InvalidArgument(f"app_id must be an integer, got {type(app_id).__name__}")
        if variant is None:
            raise ConfigurationError("Token variant must be chosen explicitly ('split' or 'blob')")
        if not _is_int(max_ttl_seconds) or max_ttl_seconds <= 0:
            raise ConfigurationError("max_ttl_seconds must be a positive integer")
        if not _is_int(default_ttl_seconds) or not 0 < default_ttl_seconds <= max_ttl_seconds:
            raise ConfigurationError(
                f"default_ttl_seconds must be between 1 and {max_ttl_seconds}"
            )

        self.app_id = app_id
        self.variant = TokenVariant.parse(variant)
        self.default_ttl = default_ttl_seconds
        self.max_ttl = max_ttl_seconds
        self.expected_secret_length = expected_secret_length
        self._provider = secret if isinstance(secret, SecretProvider) else StaticSecretProvider(secret)
        self._clock = clock
        self._nonce_source = nonce_source
        self._metrics = metrics

    def _resolve_ttl(self, ttl_seconds: Optional[int]) -> int:
        if ttl_seconds is None:
            return self.default_ttl
        if not _is_int(ttl_seconds) or ttl_seconds <= 0:
            raise InvalidArgument(f"ttl_seconds must be a positive integer, got {ttl_seconds!r}")
        if ttl_seconds > self.max_ttl:
            logger.warning(f"Requested ttl {ttl_seconds}s exceeds maximum, clamping to {self.max_ttl}s")
            return self.max_ttl
        return ttl_seconds

    def _load_signer(self) -> Signer:
        secret = normalize(self._provider.get_secret(), expected_length=self.expected_secret_length)
        return Signer(secret)

    def build_record(
        self, subject_id: str, ttl_seconds: Optional[int] = None, payload: PayloadLike = ""
    ) -> CredentialRecord:
        """
        Build the record an issuance would sign, without signing it.

        Raises:
            InvalidArgument: If subject_id, ttl_seconds or payload is invalid.
        """
        if not subject_id:
            raise InvalidArgument("subject_id is required")
        if not isinstance(subject_id, str):
            raise InvalidArgument(f"subject_id must be a string, got {type(subject_id).__name__}")

        ttl = self._resolve_ttl(ttl_seconds)
        return build_record(
            app_id=self.app_id,
            subject_id=subject_id,
            nonce=self._nonce_source(),
            issued_at=int(self._clock()),
            ttl_seconds=ttl,
            payload=_payload_text(payload),
        )

    def issue_credential(
        self, subject_id: str, ttl_seconds: Optional[int] = None, payload: PayloadLike = ""
    ) -> IssuedCredential:
        """
        Issue a credential and return it with its record.

        Args:
            subject_id: Identity to authorize. The calling layer guarantees it
                equals the authenticated principal.
            ttl_seconds: Requested lifetime; None for the default.
            payload: Authorization scope, a string or a mapping dumped as
                compact JSON.

        Raises:
            InvalidArgument: For caller errors.
            SecretNotConfigured, SecretMalformed: For secret problems.
            SigningFailed: If the HMAC primitive fails.
        """
        try:
            if self._metrics is not None:
                with self._metrics.issuance_timer():
                    issued = self._issue(subject_id, ttl_seconds, payload)
                self._metrics.record_issued(self.variant.value)
            else:
                issued = self._issue(subject_id, ttl_seconds, payload)
        except CredentialError as e:
            if self._metrics is not None:
                self._metrics.record_issue_failure(e.kind)
            if e.kind == "configuration":
                logger.error(f"Credential issuance misconfigured: {e}")
            elif e.kind == "caller":
                logger.info(f"Credential request rejected: {e}")
            raise
        return issued

    def _issue(self, subject_id: str, ttl_seconds: Optional[int], payload: PayloadLike) -> IssuedCredential:
        signer = self._load_signer()
        record = self.build_record(subject_id, ttl_seconds, payload)
        canonical = serialize(record)
        token = encode(self.variant, canonical, signer.sign(canonical))

        logger.info(
            f"Issued credential app_id={record.app_id} subject_id={record.subject_id} "
            f"secret_length={signer.secret_length} variant={self.variant.value} "
            f"ttl={record.ttl_seconds} token_length={len(token)}"
        )
        return IssuedCredential(token=token, record=record, variant=self.variant)

    def issue(
        self, subject_id: str, ttl_seconds: Optional[int] = None, payload: PayloadLike = ""
    ) -> str:
        """Issue a credential and return only the token string."""
        return self.issue_credential(subject_id, ttl_seconds, payload).token


def issue_record(
    app_id: int,
    subject_id: str,
    secret_raw: Optional[str],
    ttl_seconds: int = config.DEFAULT_TTL_SECONDS,
    payload: PayloadLike = "",
    *,
    variant: Union[TokenVariant, str],
    now: Optional[int] = None,
    nonce: Optional[int] = None,
    max_ttl_seconds: int = config.MAX_TTL_SECONDS,
) -> IssuedCredential:
    """
    One-shot issuance returning the token and its record.

    ``now`` and ``nonce`` pin the otherwise time- and random-dependent
    fields, which makes the output byte-for-byte reproducible.
    """
    issuer = CredentialIssuer(
        app_id,
        secret_raw,
        variant,
        default_ttl_seconds=min(config.DEFAULT_TTL_SECONDS, max_ttl_seconds),
        max_ttl_seconds=max_ttl_seconds,
        clock=(lambda: now) if now is not None else time.time,
        nonce_source=(lambda: nonce) if nonce is not None else generate_nonce,
    )
    return issuer.issue_credential(subject_id, ttl_seconds, payload)


def issue(
    app_id: int,
    subject_id: str,
    secret_raw: Optional[str],
    ttl_seconds: int = config.DEFAULT_TTL_SECONDS,
    payload: PayloadLike = "",
    *,
    variant: Union[TokenVariant, str],
    now: Optional[int] = None,
    nonce: Optional[int] = None,
) -> str:
    """One-shot issuance returning only the token string."""
    return issue_record(
        app_id, subject_id, secret_raw, ttl_seconds, payload, variant=variant, now=now, nonce=nonce
    ).token


def _app_id_from_config(raw: Optional[str]) -> int:
    if not raw or not (raw.strip().isascii() and raw.strip().isdigit()):
        raise ConfigurationError(f"RTCTOKEN_APP_ID must be a decimal integer, got {raw!r}")
    return int(raw.strip())


def issuer_from_env(metrics: Optional[CredentialMetrics] = None) -> CredentialIssuer:
    """
    Build an issuer from rtctoken.config.

    The secret is read through a cached environment provider, so secret
    rotation is picked up within SECRET_CACHE_TTL_SECONDS.

    Raises:
        ConfigurationError: If the app ID or variant is not configured.
    """
    if not config.TOKEN_VARIANT:
        raise ConfigurationError("RTCTOKEN_VARIANT is not set; choose 'split' or 'blob'")

    provider = CachedSecretProvider(
        EnvSecretProvider(config.SECRET_ENV_VAR), ttl_seconds=config.SECRET_CACHE_TTL_SECONDS
    )
    return CredentialIssuer(
        app_id=_app_id_from_config(config.APP_ID),
        secret=provider,
        variant=config.TOKEN_VARIANT,
        default_ttl_seconds=config.DEFAULT_TTL_SECONDS,
        max_ttl_seconds=config.MAX_TTL_SECONDS,
        expected_secret_length=config.SECRET_LENGTH,
        metrics=metrics,
    )
