"""
Shared pytest fixtures for rtctoken tests.
"""

import pytest

from rtctoken import CredentialIssuer, CredentialVerifier, TokenVariant
from rtctoken.metrics import CredentialMetrics
from rtctoken.secret import normalize

SECRET = "0123456789abcdef0123456789abcdef"
OTHER_SECRET = "fedcba9876543210fedcba9876543210"
APP_ID = 128222087
ISSUED_AT = 1000


@pytest.fixture
def secret() -> str:
    """A valid 32-hex-character server secret."""
    return SECRET


@pytest.fixture
def other_secret() -> str:
    """A different valid secret."""
    return OTHER_SECRET


@pytest.fixture
def normalized_secret():
    """The test secret after normalization."""
    return normalize(SECRET)


@pytest.fixture(params=[TokenVariant.SPLIT, TokenVariant.BLOB], ids=["split", "blob"])
def variant(request) -> TokenVariant:
    """Runs a test once per encoding variant."""
    return request.param


@pytest.fixture
def issuer(variant) -> CredentialIssuer:
    """An issuer with a pinned clock and nonce."""
    return CredentialIssuer(
        app_id=APP_ID,
        secret=SECRET,
        variant=variant,
        clock=lambda: ISSUED_AT,
        nonce_source=lambda: 7,
    )


@pytest.fixture
def verifier(variant) -> CredentialVerifier:
    """A verifier matching the issuer fixture."""
    return CredentialVerifier(SECRET, variant)


@pytest.fixture
def metrics() -> CredentialMetrics:
    """Metrics collector with a private registry."""
    return CredentialMetrics()
