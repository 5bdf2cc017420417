"""
Vault Authenticated Cipher — AEAD encryption of plaintext under a DerivedKey.

Format of ``SealedBox.to_bytes()``: [nonce 12B][encrypted_payload + tag 16B]

The AEAD primitive follows the key's algorithm label:
- ``A256GCM`` → AES-256-GCM
- ``C20P``    → ChaCha20-Poly1305

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from .errors import DecryptionError
from .keys import DerivedKey
from .provider import DEFAULT_RANDOM, RandomSource

logger = logging.getLogger("safekeys.crypto")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # GCM / Poly1305 tag

_AEAD_BY_ALGORITHM = {
    "A256GCM": AESGCM,
    "C20P": ChaCha20Poly1305,
}


def _aead_for(key: DerivedKey):
    return _AEAD_BY_ALGORITHM[key.algorithm](key.material)


@dataclass(frozen=True)
class SealedBox:
    """Ciphertext paired with the nonce it was produced under."""

    nonce: bytes
    ciphertext: bytes

    def to_bytes(self) -> bytes:
        return self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, blob: bytes) -> "SealedBox":
        """Split ``[nonce][ciphertext+tag]``.

        Raises:
            DecryptionError: If the blob cannot hold a nonce and a tag.
        """
        if len(blob) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionError()
        return cls(nonce=bytes(blob[:NONCE_SIZE]), ciphertext=bytes(blob[NONCE_SIZE:]))


class AuthenticatedCipher:
    """AEAD encrypt/decrypt with a fresh random nonce per call."""

    def __init__(self, random_source: Optional[RandomSource] = None):
        self._random = random_source or DEFAULT_RANDOM

    def encrypt(
        self,
        plaintext: bytes,
        key: DerivedKey,
        associated_data: Optional[bytes] = None,
    ) -> SealedBox:
        """Encrypt plaintext under key.

        Args:
            plaintext: Data to encrypt.
            key: Derived key; its algorithm selects the AEAD.
            associated_data: Optional data authenticated but not encrypted.

        Returns:
            SealedBox carrying the nonce and ciphertext (with tag).
        """
        nonce = self._random.token_bytes(NONCE_SIZE)
        ct = _aead_for(key).encrypt(nonce, bytes(plaintext), associated_data)
        logger.debug("Encrypted %d bytes with %s", len(plaintext), key.algorithm)
        return SealedBox(nonce=nonce, ciphertext=ct)

    def decrypt(
        self,
        box: SealedBox,
        key: DerivedKey,
        associated_data: Optional[bytes] = None,
    ) -> bytes:
        """Decrypt and authenticate a SealedBox.

        Args:
            box: Nonce and ciphertext from ``encrypt``.
            key: Same key used for encryption.
            associated_data: Same associated data used for encryption.

        Returns:
            Decrypted plaintext bytes.

        Raises:
            DecryptionError: On any authentication failure. The message does
                not reveal whether the key or the data was wrong.
        """
        if len(box.nonce) != NONCE_SIZE or len(box.ciphertext) < TAG_SIZE:
            raise DecryptionError()
        try:
            return _aead_for(key).decrypt(box.nonce, box.ciphertext, associated_data)
        except InvalidTag:
            raise DecryptionError() from None


_default_cipher = AuthenticatedCipher()


def encrypt(plaintext: bytes, key: DerivedKey, associated_data: Optional[bytes] = None) -> SealedBox:
    """Encrypt with the default cipher (system CSPRNG nonces)."""
    return _default_cipher.encrypt(plaintext, key, associated_data)


def decrypt(box: SealedBox, key: DerivedKey, associated_data: Optional[bytes] = None) -> bytes:
    """Decrypt with the default cipher."""
    return _default_cipher.decrypt(box, key, associated_data)
