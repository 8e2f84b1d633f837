"""
HS256 JWT access tokens for VideoSDK-style RTC platforms.

Some platforms take a plain JWT instead of a token04 credential. The claims
carry the platform API key and permissions; the shared secret is 64 hex
characters and goes through the same normalization as the token04 secret.
"""

import os
import json
import time
import uuid
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Union

from jwcrypto import jwk, jws, jwt
from jwcrypto.common import JWException

from rtctoken import config
from rtctoken.errors import ConfigurationError, InvalidSignature, TokenExpired, TokenMalformed
from rtctoken.secret import normalize
from rtctoken.secret_store import (
    CachedSecretProvider,
    EnvSecretProvider,
    SecretProvider,
    StaticSecretProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = ("allow_join", "allow_mod")

# Claim schema version required by current platform clusters
CLAIMS_VERSION = 2


class JwtAccessTokenIssuer:
    """
    Issues and checks HS256 access tokens.

    Example:
        >>> issuer = JwtAccessTokenIssuer(api_key=os.environ["VIDEOSDK_API_KEY"],
        ...                               secret=EnvSecretProvider("VIDEOSDK_SECRET"))
        >>> token = issuer.issue()
    """

    def __init__(
        self,
        api_key: Optional[str],
        secret: Union[str, SecretProvider, None],
        *,
        permissions: Sequence[str] = DEFAULT_PERMISSIONS,
        ttl_seconds: int = config.VIDEOSDK_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            api_key: Platform API key, embedded in the claims.
            secret: Raw 64-hex-character secret or a SecretProvider.
            permissions: Permission names granted to the holder.
            ttl_seconds: Token lifetime.
            clock: Returns the current Unix time.

        Raises:
            ConfigurationError: If the API key is missing or ttl is not positive.
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError("Platform API key is not configured")
        if ttl_seconds <= 0:
            raise ConfigurationError("ttl_seconds must be positive")

        self.api_key = api_key.strip()
        self.permissions = list(permissions)
        self.ttl_seconds = ttl_seconds
        self._provider = secret if isinstance(secret, SecretProvider) else StaticSecretProvider(secret)
        self._clock = clock

    def _key(self) -> jwk.JWK:
        secret = normalize(
            self._provider.get_secret(), expected_length=config.VIDEOSDK_SECRET_LENGTH
        )
        return jwk.JWK.from_password(secret.value)

    def build_claims(self) -> Dict[str, Any]:
        now = int(self._clock())
        return {
            "apikey": self.api_key,
            "permissions": self.permissions,
            "version": CLAIMS_VERSION,
            "iat": now,
            "exp": now + self.ttl_seconds,
            "jti": str(uuid.uuid4()),
        }

    def issue(self) -> str:
        """
        Sign a fresh access token.

        Raises:
            SecretNotConfigured, SecretMalformed: If the secret is unusable.
        """
        key = self._key()
        claims = self.build_claims()
        token = jwt.JWT(header={"alg": "HS256", "typ": "JWT"}, claims=claims)
        token.make_signed_token(key)
        serialized = token.serialize()

        logger.info(f"Issued JWT access token jti={claims['jti']} token_length={len(serialized)}")
        return serialized

    def verify(self, token: str, now: Optional[int] = None) -> Dict[str, Any]:
        """
        Check signature and expiry of an access token.

        Returns:
            The decoded claims.

        Raises:
            TokenMalformed: If the token cannot be parsed.
            InvalidSignature: If the signature does not match.
            TokenExpired: If ``now >= exp``.
        """
        key = self._key()
        parsed = jwt.JWT(check_claims=False, algs=["HS256"], expected_type="JWS")
        try:
            parsed.deserialize(token, key)
        except jws.InvalidJWSSignature as e:
            raise InvalidSignature("Access token signature does not match") from e
        except (JWException, ValueError) as e:
            raise TokenMalformed(f"Access token is malformed: {e}") from e

        claims = json.loads(parsed.claims)
        current = int(self._clock()) if now is None else now
        if current >= int(claims.get("exp", 0)):
            raise TokenExpired(f"Access token expired at {claims.get('exp')}")
        return claims


def jwt_issuer_from_env() -> JwtAccessTokenIssuer:
    """
    Build an access token issuer from the VIDEOSDK_* environment variables.

    Raises:
        ConfigurationError: If the API key is not set.
    """
    provider = CachedSecretProvider(
        EnvSecretProvider(config.VIDEOSDK_SECRET_ENV_VAR),
        ttl_seconds=config.SECRET_CACHE_TTL_SECONDS,
    )
    return JwtAccessTokenIssuer(
        api_key=os.getenv(config.VIDEOSDK_API_KEY_ENV_VAR),
        secret=provider,
        ttl_seconds=config.VIDEOSDK_TTL_SECONDS,
    )
