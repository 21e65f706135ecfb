import re
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.errors import IntegrityError
from app.services.encryption import CredentialVault, load_master_key

ENVELOPE = re.compile(r"^[0-9a-f]{32}:[0-9a-f]{32}:[0-9a-f]*$")


@pytest.fixture
def vault():
    return CredentialVault(bytes(range(32)))


def test_encryption_round_trip(vault):
    original_text = "sk-secret-api-key-123"

    encrypted = vault.encrypt(original_text)
    assert encrypted != original_text
    assert ENVELOPE.match(encrypted)
    assert vault.decrypt(encrypted) == original_text


def test_round_trip_unicode_and_empty(vault):
    for text in ["", "ключ-🔑", "a" * 5000]:
        assert vault.decrypt(vault.encrypt(text)) == text


def test_ciphertext_hex_length_matches_plaintext(vault):
    envelope = vault.encrypt("abcdef")
    assert len(envelope.split(":")[2]) == 12


def test_fresh_iv_per_call(vault):
    first = vault.encrypt("same input")
    second = vault.encrypt("same input")
    assert first != second
    assert first.split(":")[0] != second.split(":")[0]


def test_tampering_any_character_is_detected(vault):
    envelope = vault.encrypt("top-secret")
    for i, char in enumerate(envelope):
        if char == ":":
            continue
        replacement = "0" if char != "0" else "1"
        tampered = envelope[:i] + replacement + envelope[i + 1:]
        with pytest.raises(IntegrityError):
            vault.decrypt(tampered)


def test_wrong_master_key(vault):
    envelope = vault.encrypt("top-secret")
    other = CredentialVault(bytes(32))
    with pytest.raises(IntegrityError):
        other.decrypt(envelope)


@pytest.mark.parametrize("envelope", [
    "",
    "not-an-envelope",
    "aa:bb",
    "aa:bb:cc:dd",
    "zz" * 16 + ":" + "00" * 16 + ":00",
    "AA" * 16 + ":" + "00" * 16 + ":00",
    "00" * 8 + ":" + "00" * 16 + ":00",
    "00" * 16 + ":" + "00" * 16 + ":0",
])
def test_malformed_envelopes(vault, envelope):
    with pytest.raises(IntegrityError):
        vault.decrypt(envelope)


def test_integrity_error_carries_help_text(vault):
    with pytest.raises(IntegrityError) as exc_info:
        vault.decrypt("garbage")
    detail = exc_info.value.to_detail()
    assert detail["error"] == "credential_unreadable"
    assert "help" in detail
    assert exc_info.value.status_code == 422


@pytest.mark.parametrize("size", [0, 16, 31, 33])
def test_master_key_must_be_32_bytes(size):
    with pytest.raises(ValueError, match="32 bytes"):
        CredentialVault(b"\x00" * size)


def test_load_master_key_from_hex():
    assert load_master_key("ab" * 32) == b"\xab" * 32


def test_load_master_key_generates_when_missing():
    with patch("app.services.encryption.logger") as mock_logger:
        key = load_master_key(None)
    assert len(key) == 32
    mock_logger.warning.assert_called_once()
    # Generated keys are usable by the vault
    vault = CredentialVault(key)
    assert vault.decrypt(vault.encrypt("x")) == "x"


def test_interoperates_with_plain_aesgcm(vault):
    envelope = vault.encrypt("interop")
    iv_hex, tag_hex, ct_hex = envelope.split(":")
    plaintext = AESGCM(bytes(range(32))).decrypt(
        bytes.fromhex(iv_hex), bytes.fromhex(ct_hex) + bytes.fromhex(tag_hex), None
    )
    assert plaintext == b"interop"
