"""
Unit tests for token wire encodings.
"""

import base64

import pytest

from rtctoken.encoding import TokenVariant, decode, encode
from rtctoken.errors import ConfigurationError, TokenMalformed

CANONICAL = b'{"version":"04","app_id":1,"user_id":"u","nonce":0,"ctime":1,"expire":2,"payload":"a.b"}'
SIGNATURE = bytes(range(32))
B64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def _set_pad_bit(part: str) -> str:
    """Set an unused low bit in the last base64 digit before the padding."""
    body = part.rstrip("=")
    last = B64_ALPHABET[B64_ALPHABET.index(body[-1]) | 1]
    return body[:-1] + last + part[len(body):]


class TestTokenVariant:
    """Tests for TokenVariant.parse()."""

    @pytest.mark.parametrize("text", ["split", "SPLIT", "a", " A "])
    def test_split_aliases(self, text):
        assert TokenVariant.parse(text) is TokenVariant.SPLIT

    @pytest.mark.parametrize("text", ["blob", "Blob", "b"])
    def test_blob_aliases(self, text):
        assert TokenVariant.parse(text) is TokenVariant.BLOB

    def test_enum_passthrough(self):
        assert TokenVariant.parse(TokenVariant.BLOB) is TokenVariant.BLOB

    @pytest.mark.parametrize("text", [None, "", "c", "both", "auto"])
    def test_unknown_variant(self, text):
        """There is no implicit or auto-detecting variant."""
        with pytest.raises(ConfigurationError):
            TokenVariant.parse(text)


class TestSplitEncoding:
    """Tests for variant A: b64(record) + "." + b64(signature)."""

    def test_layout(self):
        token = encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE)
        record_part, sig_part = token.split(".")
        assert base64.b64decode(record_part) == CANONICAL
        assert base64.b64decode(sig_part) == SIGNATURE

    def test_decode(self):
        token = encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE)
        assert decode(TokenVariant.SPLIT, token) == (CANONICAL, SIGNATURE)

    def test_signature_is_base64_not_hex(self):
        token = encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE)
        assert token.split(".")[1] == base64.b64encode(SIGNATURE).decode()

    @pytest.mark.parametrize("token", ["", "abc", "a.b.c", "!!!.AAAA"])
    def test_malformed(self, token):
        with pytest.raises(TokenMalformed):
            decode(TokenVariant.SPLIT, token)

    def test_short_signature(self):
        token = encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE[:16])
        with pytest.raises(TokenMalformed, match="16 bytes"):
            decode(TokenVariant.SPLIT, token)

    def test_stray_pad_bits_rejected(self):
        """Each credential has exactly one split token string."""
        record_part, sig_part = encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE).split(".")
        loose = f"{record_part}.{_set_pad_bit(sig_part)}"
        assert base64.b64decode(loose.split(".")[1]) == SIGNATURE
        with pytest.raises(TokenMalformed, match="canonical"):
            decode(TokenVariant.SPLIT, loose)


class TestBlobEncoding:
    """Tests for variant B: b64(record + "." + hex(signature))."""

    def test_layout(self):
        token = encode(TokenVariant.BLOB, CANONICAL, SIGNATURE)
        assert "." not in token
        assert base64.b64decode(token) == CANONICAL + b"." + SIGNATURE.hex().encode()

    def test_decode_splits_on_last_dot(self):
        """Dots inside the record (here in the payload) are preserved."""
        token = encode(TokenVariant.BLOB, CANONICAL, SIGNATURE)
        assert decode(TokenVariant.BLOB, token) == (CANONICAL, SIGNATURE)

    def test_no_separator(self):
        token = base64.b64encode(b"no separator here").decode()
        with pytest.raises(TokenMalformed, match="separator"):
            decode(TokenVariant.BLOB, token)

    def test_bad_hex(self):
        token = base64.b64encode(CANONICAL + b"." + b"zz" * 32).decode()
        with pytest.raises(TokenMalformed, match="hex"):
            decode(TokenVariant.BLOB, token)

    def test_uppercase_hex_rejected(self):
        """The signature hex is lowercase only."""
        token = base64.b64encode(CANONICAL + b"." + SIGNATURE.hex().upper().encode()).decode()
        with pytest.raises(TokenMalformed, match="canonical"):
            decode(TokenVariant.BLOB, token)

    def test_hex_with_spaces_rejected(self):
        spaced = " ".join(SIGNATURE.hex()[i : i + 2] for i in range(0, 64, 2))
        token = base64.b64encode(CANONICAL + b"." + spaced.encode()).decode()
        with pytest.raises(TokenMalformed):
            decode(TokenVariant.BLOB, token)


class TestVariantsAreIncompatible:
    """The two layouts never decode each other's tokens."""

    def test_different_strings(self):
        assert encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE) != encode(
            TokenVariant.BLOB, CANONICAL, SIGNATURE
        )

    def test_split_token_rejected_by_blob_decoder(self):
        token = encode(TokenVariant.SPLIT, CANONICAL, SIGNATURE)
        with pytest.raises(TokenMalformed):
            decode(TokenVariant.BLOB, token)

    def test_blob_token_rejected_by_split_decoder(self):
        token = encode(TokenVariant.BLOB, CANONICAL, SIGNATURE)
        with pytest.raises(TokenMalformed):
            decode(TokenVariant.SPLIT, token)
