"""
Unit tests for server secret normalization.
"""

import logging

import pytest

from rtctoken.errors import ConfigurationError, SecretMalformed, SecretNotConfigured, SecretProblem
from rtctoken.secret import NormalizedSecret, mask_secret, normalize

from conftest import SECRET


class TestNormalizeCleanup:
    """Tests for harmless input that gets cleaned up."""

    def test_plain_secret(self):
        """A clean secret passes through unchanged."""
        assert normalize(SECRET).value == SECRET

    def test_trims_whitespace(self):
        """Surrounding whitespace and newlines are removed."""
        assert normalize(f"  {SECRET}\n").value == SECRET

    def test_strips_double_quotes_and_padding(self):
        """A quoted, padded secret yields the unquoted value."""
        assert normalize(f' "{SECRET}" ').value == SECRET

    def test_strips_single_quotes(self):
        """Single quotes are stripped as well."""
        assert normalize(f"'{SECRET}'").value == SECRET

    def test_whitespace_inside_quotes(self):
        """Whitespace inside the quotes is trimmed after unquoting."""
        assert normalize(f'" {SECRET} "').value == SECRET

    def test_uppercase_hex_is_kept(self):
        """Uppercase hex is accepted and not case-folded."""
        upper = SECRET.upper()
        assert normalize(upper).value == upper

    def test_custom_length(self):
        """expected_length selects the protocol-specific length."""
        long_secret = SECRET * 2
        assert normalize(long_secret, expected_length=64).length == 64


class TestNormalizeMissing:
    """Tests for absent secrets."""

    @pytest.mark.parametrize("raw", [None, "", "   ", "\n\t"])
    def test_absent(self, raw):
        """None, empty and whitespace-only secrets are not configured."""
        with pytest.raises(SecretNotConfigured):
            normalize(raw)

    @pytest.mark.parametrize("raw", ['""', "''", '"   "'])
    def test_empty_after_unquoting(self, raw):
        """A pair of quotes around nothing is not configured."""
        with pytest.raises(SecretNotConfigured):
            normalize(raw)

    def test_is_configuration_error(self):
        """Missing secrets are reported as configuration errors."""
        with pytest.raises(ConfigurationError) as exc_info:
            normalize(None)
        assert exc_info.value.kind == "configuration"


class TestNormalizeMalformed:
    """Tests for secrets with the wrong shape."""

    def test_still_quoted_is_diagnosed(self):
        """A 34-character secret after trimming is reported as likely quoted."""
        with pytest.raises(SecretMalformed) as exc_info:
            normalize(f"'\"{SECRET}\"'")
        err = exc_info.value
        assert err.reason is SecretProblem.LIKELY_QUOTED
        assert err.length == 34
        assert err.expected_length == 32
        assert "length 34, expected 32, looks quoted" in str(err)

    def test_mismatched_quotes_are_diagnosed(self):
        """Mismatched quotes are not stripped but still detected."""
        with pytest.raises(SecretMalformed) as exc_info:
            normalize(f"\"{SECRET}'")
        assert exc_info.value.reason is SecretProblem.LIKELY_QUOTED

    def test_any_two_extra_characters(self):
        """The quoted diagnosis applies to any expected+2 length."""
        with pytest.raises(SecretMalformed) as exc_info:
            normalize(SECRET + "ab")
        assert exc_info.value.reason is SecretProblem.LIKELY_QUOTED

    @pytest.mark.parametrize("raw", [SECRET[:-1], SECRET + "a", SECRET * 2])
    def test_wrong_length(self, raw):
        """Other length mismatches are generic length errors."""
        with pytest.raises(SecretMalformed) as exc_info:
            normalize(raw)
        assert exc_info.value.reason is SecretProblem.WRONG_LENGTH
        assert f"length {len(raw)}, expected 32" in str(exc_info.value)

    def test_non_hex(self):
        """Non-hex characters are rejected when hex is required."""
        with pytest.raises(SecretMalformed) as exc_info:
            normalize("z" + SECRET[1:])
        assert exc_info.value.reason is SecretProblem.NON_HEX

    def test_non_hex_allowed_when_not_required(self):
        """require_hex=False accepts any characters of the right length."""
        raw = "z" + SECRET[1:]
        assert normalize(raw, require_hex=False).value == raw

    def test_error_never_contains_secret(self):
        """Diagnostic messages never echo the secret value."""
        raw = "z" + SECRET[1:]
        with pytest.raises(SecretMalformed) as exc_info:
            normalize(raw)
        assert raw not in str(exc_info.value)


class TestNormalizedSecret:
    """Tests for the NormalizedSecret value object."""

    def test_repr_hides_value(self):
        """repr() does not include the secret."""
        secret = normalize(SECRET)
        assert SECRET not in repr(secret)
        assert SECRET not in str(secret)

    def test_key_bytes(self):
        """key_bytes() is the UTF-8 text, not hex-decoded."""
        assert normalize(SECRET).key_bytes() == SECRET.encode("utf-8")

    def test_is_frozen(self):
        """NormalizedSecret is immutable."""
        secret = normalize(SECRET)
        with pytest.raises(Exception):
            secret.value = "changed"

    def test_masked(self):
        """masked shows only the edges."""
        secret = NormalizedSecret(value=SECRET)
        assert secret.masked == "01" + "*" * 28 + "ef"

    def test_normalize_logs_only_masked_preview(self, caplog):
        """Debug logging shows length and preview, never the value."""
        with caplog.at_level(logging.DEBUG, logger="rtctoken"):
            normalize(f' "{SECRET}" ')
        assert "length=32" in caplog.text
        assert SECRET not in caplog.text


class TestMaskSecret:
    """Tests for mask_secret()."""

    def test_empty(self):
        assert mask_secret("") == "<empty>"
        assert mask_secret(None) == "<empty>"

    def test_short_values_fully_masked(self):
        """Short values reveal nothing."""
        assert mask_secret("abcd") == "****"
