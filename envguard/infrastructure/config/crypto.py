"""
Field-level encryption for sensitive configuration values.

Values are encrypted with AES-256-GCM under a key derived from a passphrase
with scrypt. The stored form is ``<ivHex>:<authTagHex>:<cipherHex>``, which
is safe to keep inline in an env file.
"""

import logging
import os
import re
from typing import Any, Dict, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from ...core.exceptions import DecryptionError, EncryptionError

logger = logging.getLogger(__name__)

DEFAULT_SALT = b"salt"
KEY_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1
DELIMITER = ":"

_PAYLOAD_RE = re.compile(
    r"^[0-9a-fA-F]{%d}:[0-9a-fA-F]{%d}:(?:[0-9a-fA-F]{2})*$" % (IV_LENGTH * 2, TAG_LENGTH * 2)
)

# Two leading hex fields mark a payload, well-formed or not.
_PAYLOAD_SHAPE_RE = re.compile(r"^[0-9a-fA-F]+:[0-9a-fA-F]+:")


def derive_key(passphrase: str, salt: Optional[Union[bytes, str]] = None) -> bytes:
    """
    Derive a 256-bit key from ``passphrase`` using scrypt.

    Args:
        passphrase: Secret supplied by the caller
        salt: Optional salt; the fixed ``DEFAULT_SALT`` is used when omitted

    Returns:
        Derived key bytes
    """
    if isinstance(salt, str):
        salt = salt.encode('utf-8')
    kdf = Scrypt(
        salt=salt or DEFAULT_SALT,
        length=KEY_LENGTH,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
    )
    return kdf.derive(passphrase.encode('utf-8'))


class EncryptionCodec:
    """
    Authenticated encryption of individual string values.

    Each ``encrypt`` call uses a fresh random IV, so encrypting the same
    plaintext twice yields different payloads that both decrypt to it.
    """

    def __init__(self, passphrase: str, salt: Optional[Union[bytes, str]] = None):
        """
        Initialize the codec.

        Args:
            passphrase: Encryption passphrase (must not be empty)
            salt: Optional key-derivation salt

        Raises:
            ValueError: If the passphrase is empty
        """
        if not passphrase:
            raise ValueError("Encryption key is required")

        self._custom_salt = salt is not None
        self._aesgcm = AESGCM(derive_key(passphrase, salt))
        logger.debug("Encryption codec initialized")

    @staticmethod
    def is_encrypted(value: Optional[str]) -> bool:
        """Check whether ``value`` has the structure of an encrypted payload."""
        return bool(value) and _PAYLOAD_RE.match(value) is not None  # type: ignore[arg-type]

    @staticmethod
    def looks_encrypted(value: Optional[str]) -> bool:
        """Check whether ``value`` is shaped like a payload, well-formed or not."""
        return bool(value) and _PAYLOAD_SHAPE_RE.match(value) is not None  # type: ignore[arg-type]

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string value.

        Args:
            plaintext: Value to encrypt

        Returns:
            Payload string ``<ivHex>:<authTagHex>:<cipherHex>``

        Raises:
            EncryptionError: If encryption fails
        """
        try:
            iv = os.urandom(IV_LENGTH)
            sealed = self._aesgcm.encrypt(iv, plaintext.encode('utf-8'), None)
        except Exception as e:
            logger.error(f"Failed to encrypt value: {e}")
            raise EncryptionError(f"Failed to encrypt value: {e}") from e

        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return DELIMITER.join((iv.hex(), tag.hex(), ciphertext.hex()))

    def decrypt(self, payload: str) -> str:
        """
        Decrypt a payload produced by ``encrypt``.

        Args:
            payload: Encrypted payload string

        Returns:
            The original plaintext

        Raises:
            DecryptionError: If the payload is malformed or fails authentication
        """
        parts = payload.split(DELIMITER)
        if len(parts) != 3:
            raise DecryptionError("Invalid encrypted format")

        iv_hex, tag_hex, cipher_hex = parts
        try:
            iv = bytes.fromhex(iv_hex)
            tag = bytes.fromhex(tag_hex)
            ciphertext = bytes.fromhex(cipher_hex)
        except ValueError:
            raise DecryptionError("Invalid encrypted format: not hex encoded") from None

        if len(tag) != TAG_LENGTH:
            raise DecryptionError("Invalid encrypted format: bad authentication tag length")
        if len(iv) != IV_LENGTH:
            raise DecryptionError("Invalid encrypted format: bad IV length")

        try:
            plaintext = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag:
            logger.error("Failed to decrypt value: authentication tag mismatch")
            raise DecryptionError("Decryption failed: invalid key or tampered value") from None

        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionError(f"Decrypted value is not valid UTF-8: {e}") from e

    def verify_key(self) -> bool:
        """
        Verify that the codec round-trips a sample value.

        Returns:
            True if key is usable, False otherwise
        """
        try:
            sample = "verification"
            return self.decrypt(self.encrypt(sample)) == sample
        except Exception as e:
            logger.error(f"Key verification failed: {e}")
            return False

    def get_key_info(self) -> Dict[str, Any]:
        """Describe the codec configuration (never the key itself)."""
        return {
            "algorithm": "aes-256-gcm",
            "kdf": "scrypt",
            "custom_salt": self._custom_salt,
            "key_valid": self.verify_key(),
        }
