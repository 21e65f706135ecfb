"""Authenticated encryption of user-supplied API keys (AES-256-GCM)."""
import logging
import os
import re
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.config import settings
from app.core.errors import IntegrityError

logger = logging.getLogger(__name__)

IV_SIZE = 16
TAG_SIZE = 16
KEY_SIZE = 32

# Lowercase hex never contains the delimiter
ENVELOPE_DELIMITER = ":"
_HEX_PART = re.compile(r"[0-9a-f]*")


class CredentialVault:
    """
    Service responsible for encrypting and decrypting stored API keys.

    Envelopes have the form ``"<iv>:<tag>:<ciphertext>"``, each part lowercase
    hex. A fresh random 16-byte IV is drawn for every call to ``encrypt``.
    """
    def __init__(self, master_key: bytes):
        """
        Args:
            master_key: The 32-byte AES-256 key.

        Raises:
            ValueError: If the key is not exactly 32 bytes.
        """
        if len(master_key) != KEY_SIZE:
            raise ValueError(f"Master key must be {KEY_SIZE} bytes, got {len(master_key)}")
        self._aesgcm = AESGCM(master_key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypts a plain text string.

        Returns:
            str: The envelope to store in ``ApiKey.ciphertext``.
        """
        iv = os.urandom(IV_SIZE)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return ENVELOPE_DELIMITER.join((iv.hex(), tag.hex(), ciphertext.hex()))

    def decrypt(self, envelope: str) -> str:
        """
        Verifies and decrypts an envelope produced by ``encrypt``.

        Raises:
            IntegrityError: If the envelope is malformed, was tampered with,
                or was sealed under a different master key.
        """
        parts = envelope.split(ENVELOPE_DELIMITER)
        if len(parts) != 3 or not all(_HEX_PART.fullmatch(p) for p in parts):
            raise IntegrityError("Malformed credential envelope")

        iv_hex, tag_hex, ciphertext_hex = parts
        try:
            iv = bytes.fromhex(iv_hex)
            tag = bytes.fromhex(tag_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError:
            raise IntegrityError("Malformed credential envelope")

        if len(iv) != IV_SIZE or len(tag) != TAG_SIZE:
            raise IntegrityError("Malformed credential envelope")

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            raise IntegrityError("Credential failed authentication")

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise IntegrityError("Credential failed authentication")


def load_master_key(configured: str | None) -> bytes:
    """
    Turn the configured hex key into bytes, or generate a throwaway key.

    A generated key lives only as long as the process, so anything encrypted
    with it is unrecoverable after a restart.
    """
    if configured:
        return bytes.fromhex(configured)
    logger.warning(
        "ENCRYPTION_KEY is not set; generated a temporary master key. "
        "Stored API keys will be unreadable after a restart."
    )
    return AESGCM.generate_key(bit_length=256)


@lru_cache(maxsize=1)
def get_encryption_service() -> CredentialVault:
    """Process-wide vault; the master key is read once."""
    return CredentialVault(load_master_key(settings.ENCRYPTION_KEY))
