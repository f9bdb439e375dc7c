"""
Tests for field encryption (vault/encryption.py).

Covers key derivation, per-call randomness, pass-through of non-text values,
and failure reporting for wrong keys and corrupted ciphertext.
"""

import base64
import logging

import pytest

from secure_vault.vault.encryption import (
    DECRYPT_FAILED,
    NONCE_LENGTH,
    SALT_LENGTH,
    TAG_LENGTH,
    decrypt,
    derive_encryption_key,
    encrypt,
    try_decrypt,
)


@pytest.fixture
def key():
    return derive_encryption_key("secret1")


class TestKeyDerivation:

    def test_deterministic(self):
        assert derive_encryption_key("secret1") == derive_encryption_key("secret1")

    def test_hex_digest(self):
        k = derive_encryption_key("secret1")
        assert len(k) == 64
        int(k, 16)

    def test_different_passwords_differ(self):
        assert derive_encryption_key("secret1") != derive_encryption_key("secret2")

    def test_unicode_password(self):
        assert len(derive_encryption_key("pässwörd🔑")) == 64


class TestEncryptDecrypt:

    def test_round_trip(self, key):
        ct = encrypt("hunter2", key)
        assert ct != "hunter2"
        assert decrypt(ct, key) == "hunter2"

    def test_unicode_round_trip(self, key):
        assert decrypt(encrypt("ключ 🔐 café", key), key) == "ключ 🔐 café"

    def test_fresh_ciphertext_every_call(self, key):
        assert encrypt("same", key) != encrypt("same", key)

    def test_layout(self, key):
        blob = base64.b64decode(encrypt("abc", key))
        assert len(blob) == SALT_LENGTH + NONCE_LENGTH + 3 + TAG_LENGTH

    @pytest.mark.parametrize("value", ["", None, 42])
    def test_non_text_passes_through(self, key, value):
        assert encrypt(value, key) == value
        assert decrypt(value, key) == value

    def test_wrong_key_returns_sentinel(self, key, caplog):
        ct = encrypt("hunter2", key)
        with caplog.at_level(logging.WARNING, logger="secure_vault.vault.encryption"):
            assert decrypt(ct, derive_encryption_key("other")) == DECRYPT_FAILED
        assert "hunter2" not in caplog.text
        assert "authentication failed" in caplog.text


class TestTryDecrypt:

    def test_ok(self, key):
        result = try_decrypt(encrypt("x", key), key)
        assert result.ok
        assert result.plaintext == "x"

    def test_empty_is_ok(self, key):
        result = try_decrypt("", key)
        assert result.ok
        assert result.plaintext == ""

    def test_wrong_key(self, key):
        result = try_decrypt(encrypt("x", key), "not-the-key")
        assert not result.ok
        assert result.reason == "authentication failed"

    def test_malformed(self, key):
        result = try_decrypt("not base64 at all!", key)
        assert not result.ok
        assert result.reason == "malformed"

    def test_truncated(self, key):
        short = base64.b64encode(b"\x00" * 10).decode()
        result = try_decrypt(short, key)
        assert not result.ok
        assert result.reason == "truncated"

    def test_tampered(self, key):
        blob = bytearray(base64.b64decode(encrypt("secret", key)))
        blob[-1] ^= 0x01
        result = try_decrypt(base64.b64encode(bytes(blob)).decode(), key)
        assert not result.ok
        assert result.reason == "authentication failed"
