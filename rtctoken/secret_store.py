"""
Server secret providers.

The issuer never owns the secret. It asks a provider for the raw string on
every issuance and normalizes whatever comes back. Providers only fetch;
they do not validate.
"""

import os
import time
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SecretProvider(ABC):
    """Abstract source of a raw server secret."""

    @abstractmethod
    def get_secret(self) -> Optional[str]:
        """Return the raw secret, or None if it is not configured."""
        pass


class StaticSecretProvider(SecretProvider):
    """Returns a fixed value. Useful for tests and for secrets injected at startup."""

    def __init__(self, value: Optional[str]):
        self._value = value

    def get_secret(self) -> Optional[str]:
        return self._value

    def __repr__(self) -> str:
        return f"StaticSecretProvider(set={bool(self._value)})"


class EnvSecretProvider(SecretProvider):
    """
    Reads the secret from an environment variable on every call.

    Secret managers that mount secrets as environment variables (Cloud Run,
    Cloud Functions, Kubernetes) can update the value between calls.
    """

    def __init__(self, name: str = "RTCTOKEN_SERVER_SECRET"):
        if not name:
            raise ValueError("EnvSecretProvider requires an environment variable name")
        self.name = name

    def get_secret(self) -> Optional[str]:
        return os.environ.get(self.name)

    def __repr__(self) -> str:
        return f"EnvSecretProvider(name={self.name!r})"


class CachedSecretProvider(SecretProvider):
    """
    Caches another provider's value for a fixed time.

    Thread-safe. A missing value (None) is not cached, so a secret that gets
    configured later is picked up on the next call.

    Example:
        >>> provider = CachedSecretProvider(EnvSecretProvider(), ttl_seconds=300)
        >>> raw = provider.get_secret()
    """

    def __init__(
        self,
        inner: SecretProvider,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            inner: Provider to read through to.
            ttl_seconds: How long a fetched value is reused.
            clock: Monotonic time source.
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        self._inner = inner
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[str] = None
        self._fetched_at: Optional[float] = None
        self._stats = {"hits": 0, "misses": 0}

    def get_secret(self) -> Optional[str]:
        with self._lock:
            now = self._clock()
            if self._fetched_at is not None and now - self._fetched_at < self._ttl:
                self._stats["hits"] += 1
                return self._value

            self._stats["misses"] += 1
            value = self._inner.get_secret()
            if value is None:
                self._value, self._fetched_at = None, None
            else:
                self._value, self._fetched_at = value, now
                logger.debug(f"Refreshed secret from {self._inner!r}")
            return value

    def invalidate(self) -> None:
        """Drop the cached value so the next call reads through."""
        with self._lock:
            self._value, self._fetched_at = None, None

    @property
    def stats(self) -> dict:
        return {**self._stats, "ttl_seconds": self._ttl, "cached": self._fetched_at is not None}
