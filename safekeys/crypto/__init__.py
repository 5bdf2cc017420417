"""SafeKeys Crypto — Key derivation, authenticated encryption and vault envelopes.

Security Note (Threat Model):
    The master password and derived keys live in process memory only for the
    duration of a ``seal``/``open`` call. A memory dump taken during that
    window could expose them; exported key strings held by the caller are as
    sensitive as the key itself. Hardware-backed key storage is out of scope.
"""

from .errors import (
    VaultCryptoError,
    MissingMasterPassword,
    InvalidEnvelopeFormat,
    UnsupportedVersion,
    DecryptionError,
    KeyDeserializationError,
    ChecksumMismatch,
)
from .provider import RandomSource, SystemRandomSource
from .config import CryptoConfig, CURRENT_VERSION, SUPPORTED_VERSIONS
from .keys import DerivedKey, export_key, import_key
from .kdf import KeyDerivation, derive_key, generate_salt, PBKDF2_ITERATIONS, SALT_SIZE
from .cipher import AuthenticatedCipher, SealedBox, encrypt, decrypt, NONCE_SIZE
from .envelope import (
    EncryptedEnvelope,
    EnvelopeMetadata,
    EnvelopeValidation,
    EnvelopeCodec,
    compute_checksum,
    validate_envelope,
    dump_envelope,
    load_envelope,
    default_codec,
    seal,
    open_envelope,
)

__all__ = [
    "VaultCryptoError",
    "MissingMasterPassword",
    "InvalidEnvelopeFormat",
    "UnsupportedVersion",
    "DecryptionError",
    "KeyDeserializationError",
    "ChecksumMismatch",
    "RandomSource",
    "SystemRandomSource",
    "CryptoConfig",
    "CURRENT_VERSION",
    "SUPPORTED_VERSIONS",
    "DerivedKey",
    "export_key",
    "import_key",
    "KeyDerivation",
    "derive_key",
    "generate_salt",
    "PBKDF2_ITERATIONS",
    "SALT_SIZE",
    "AuthenticatedCipher",
    "SealedBox",
    "encrypt",
    "decrypt",
    "NONCE_SIZE",
    "EncryptedEnvelope",
    "EnvelopeMetadata",
    "EnvelopeValidation",
    "EnvelopeCodec",
    "compute_checksum",
    "validate_envelope",
    "dump_envelope",
    "load_envelope",
    "default_codec",
    "seal",
    "open_envelope",
]
