"""
Unit tests for nonce generation.
"""

from concurrent.futures import ThreadPoolExecutor

from rtctoken.config import NONCE_UPPER_BOUND
from rtctoken.nonce import generate_nonce


class TestGenerateNonce:
    def test_range(self):
        """Nonces are non-negative and below the 31-bit bound."""
        for _ in range(1000):
            nonce = generate_nonce()
            assert isinstance(nonce, int)
            assert 0 <= nonce < NONCE_UPPER_BOUND

    def test_independent_draws(self):
        """Repeated draws do not repeat in practice."""
        nonces = {generate_nonce() for _ in range(1000)}
        assert len(nonces) > 990

    def test_concurrent_draws(self):
        """Concurrent callers get independent values."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            nonces = list(pool.map(lambda _: generate_nonce(), range(200)))
        assert len(set(nonces)) > 195
