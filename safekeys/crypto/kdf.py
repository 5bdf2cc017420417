"""
Vault Key Derivation — Master password + salt → 256-bit key (PBKDF2-HMAC-SHA256).

Derivation is deterministic for a (password, salt) pair and deliberately
slow. A fresh 32-byte salt is generated for every sealed vault.

Security Note:
    Never log the password or the derived key. Only iteration counts and
    algorithm labels are logged.
"""
import logging
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .keys import KEY_LENGTH, DEFAULT_ALGORITHM, DerivedKey, export_key, import_key
from .provider import DEFAULT_RANDOM, RandomSource

logger = logging.getLogger("safekeys.crypto")

PBKDF2_ITERATIONS = 600_000  # OWASP 2023 recommendation for PBKDF2-SHA256
SALT_SIZE = 32  # 256-bit salt

# Bounds for an iteration count read from an envelope.
MIN_ITERATIONS = 1_000
MAX_ITERATIONS = 10_000_000


class KeyDerivation:
    """Password-based key derivation with an injected random source."""

    def __init__(
        self,
        iterations: int = PBKDF2_ITERATIONS,
        random_source: Optional[RandomSource] = None,
    ):
        if iterations < 1:
            raise ValueError(f"PBKDF2 iterations must be positive, got {iterations}")
        self.iterations = iterations
        self._random = random_source or DEFAULT_RANDOM

    def generate_salt(self) -> bytes:
        """Generate a fresh random salt of SALT_SIZE bytes."""
        return self._random.token_bytes(SALT_SIZE)

    def derive(
        self,
        password: str,
        salt: bytes,
        algorithm: str = DEFAULT_ALGORITHM,
        iterations: Optional[int] = None,
    ) -> DerivedKey:
        """Derive an encryption key from a master password using PBKDF2.

        Empty, very long and non-ASCII passwords are all valid input.

        Args:
            password: User's master password.
            salt: 32-byte random salt stored with the vault.
            algorithm: Label of the AEAD the key will be used with.
            iterations: Work factor recorded with the data being opened;
                defaults to this instance's count.

        Returns:
            256-bit DerivedKey.

        Raises:
            TypeError: If password is not a string.
            ValueError: If salt is not SALT_SIZE bytes.
        """
        if not isinstance(password, str):
            raise TypeError("Master password must be a string")
        if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_SIZE:
            raise ValueError(f"Salt must be exactly {SALT_SIZE} bytes")
        iterations = iterations or self.iterations
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_LENGTH,
            salt=bytes(salt),
            iterations=iterations,
        )
        material = kdf.derive(password.encode("utf-8"))
        logger.debug(
            "Derived %s key (PBKDF2-SHA256, %d iterations)",
            algorithm, iterations,
        )
        return DerivedKey(material, algorithm=algorithm)

    def __repr__(self) -> str:
        return f"<KeyDerivation PBKDF2-SHA256 iterations={self.iterations}>"


_default_kdf = KeyDerivation()


def derive_key(password: str, salt: bytes, algorithm: str = DEFAULT_ALGORITHM) -> DerivedKey:
    """Derive a key with the default work factor."""
    return _default_kdf.derive(password, salt, algorithm)


def generate_salt() -> bytes:
    """Generate a 32-byte salt from the system CSPRNG."""
    return _default_kdf.generate_salt()


__all__ = [
    "PBKDF2_ITERATIONS",
    "SALT_SIZE",
    "MIN_ITERATIONS",
    "MAX_ITERATIONS",
    "KeyDerivation",
    "derive_key",
    "generate_salt",
    "export_key",
    "import_key",
]
