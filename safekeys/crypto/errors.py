"""
Vault Crypto Errors — Typed failures raised by the cryptographic core.

Every failure is terminal for the operation that raised it. The core never
retries and never returns partial plaintext; the caller decides what to show
to the user.

Security Note:
    Messages never include passwords, key material, plaintext or ciphertext.
    ``DecryptionError`` uses a single fixed message so a wrong password and a
    corrupted ciphertext are indistinguishable.
"""
from collections.abc import Iterable


class VaultCryptoError(Exception):
    """Base class for all cryptographic core failures."""


class MissingMasterPassword(VaultCryptoError):
    """An encrypted operation was requested without a master password."""

    def __init__(self, message: str = "Master password is required for encrypted vaults"):
        super().__init__(message)


class InvalidEnvelopeFormat(VaultCryptoError):
    """Input is not a vault envelope; no cryptographic call was made."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid vault envelope format: {reason}")


class UnsupportedVersion(VaultCryptoError):
    """Envelope declares a format version this implementation cannot open."""

    def __init__(self, version: str, supported: Iterable[str] = ()):
        self.version = version
        self.supported = tuple(sorted(supported))
        super().__init__(
            f"Unsupported vault format version {version!r} "
            f"(supported: {', '.join(self.supported) or 'none'})"
        )


class DecryptionError(VaultCryptoError):
    """Authenticated decryption failed (wrong key or tampered data)."""

    MESSAGE = "Unable to decrypt vault: wrong password or corrupted data"

    def __init__(self):
        super().__init__(self.MESSAGE)


class KeyDeserializationError(VaultCryptoError):
    """A serialized key string is malformed or describes an invalid key."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Cannot import key: {reason}")


class ChecksumMismatch(VaultCryptoError, UserWarning):
    """Decrypted plaintext does not match the checksum stored in metadata.

    Issued as a warning by default: successful authenticated decryption is
    the authoritative integrity signal.
    """

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vault checksum mismatch: metadata has {expected}, plaintext hashes to {actual}"
        )
