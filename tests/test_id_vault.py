"""
Tests for national ID encryption.
"""

import base64

import pytest

from sonoreport.services.id_vault import NationalIdVault


@pytest.fixture
def vault():
    return NationalIdVault(secret="test-secret")


class TestNationalIdVault:
    """Test suite for NationalIdVault."""

    def test_roundtrip(self, vault):
        token = vault.encrypt("990101-1234567")
        assert vault.decrypt(token) == "990101-1234567"

    def test_token_format(self, vault):
        version, nonce, ciphertext, tag = vault.encrypt("990101-1234567").split(":")

        assert version == "v1"
        assert len(base64.b64decode(nonce)) == 12
        assert len(base64.b64decode(tag)) == 16
        assert len(base64.b64decode(ciphertext)) == len("990101-1234567")

    def test_fresh_nonce_per_call(self, vault):
        assert vault.encrypt("990101-1234567") != vault.encrypt("990101-1234567")

    def test_wrong_secret_rejected(self, vault):
        token = vault.encrypt("990101-1234567")
        with pytest.raises(ValueError, match="Failed to decrypt"):
            NationalIdVault(secret="other-secret").decrypt(token)

    def test_malformed_token_rejected(self, vault):
        with pytest.raises(ValueError, match="Unsupported"):
            vault.decrypt("v2:a:b:c")
        with pytest.raises(ValueError):
            vault.decrypt("v1:not base64:x:y")

    def test_missing_secret(self):
        with pytest.raises(RuntimeError, match="Missing RRN_ENCRYPTION_SECRET"):
            NationalIdVault(secret="")

    def test_protect(self, vault):
        result = vault.protect(" 990101-1234567 ")

        assert result.masked == "990101-1******"
        assert vault.decrypt(result.encrypted) == "990101-1234567"

    def test_protect_blank(self, vault):
        result = vault.protect("  ")
        assert result.masked == ""
        assert result.encrypted == ""
