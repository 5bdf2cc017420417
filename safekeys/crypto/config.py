"""
Vault Crypto Configuration — Work factor, cipher backend and format versions.

Reads optional overrides from environment variables:
    SAFEKEYS_KDF_ITERATIONS = <integer, PBKDF2 iteration count>
    SAFEKEYS_CIPHER_BACKEND = aesgcm | chacha20
    SAFEKEYS_STRICT_CHECKSUM = 1 | true | yes | on

Security Note:
    A non-default iteration count is recorded in the envelopes a codec seals,
    so any codec opens them. Envelopes without one use PBKDF2_ITERATIONS.
"""
import os
import logging

from pydantic import BaseModel, Field, field_validator

from .kdf import MAX_ITERATIONS, MIN_ITERATIONS, PBKDF2_ITERATIONS, SALT_SIZE

logger = logging.getLogger("safekeys.crypto")

# Envelope format version -> key algorithm label.
SUPPORTED_VERSIONS: dict[str, str] = {
    "1.0.0": "A256GCM",
    "1.1.0": "C20P",
}
CURRENT_VERSION = "1.0.0"

# Cipher backend -> envelope format version stamped by ``seal``.
BACKEND_VERSIONS: dict[str, str] = {
    "aesgcm": "1.0.0",
    "chacha20": "1.1.0",
}

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def version_algorithm(version: str) -> str:
    """Return the key algorithm label for an envelope format version.

    Raises:
        KeyError: If the version is not in SUPPORTED_VERSIONS.
    """
    return SUPPORTED_VERSIONS[version]


class CryptoConfig(BaseModel):
    """Validated crypto core configuration."""

    kdf_iterations: int = Field(
        default=PBKDF2_ITERATIONS, ge=MIN_ITERATIONS, le=MAX_ITERATIONS,
    )
    cipher_backend: str = Field(default="aesgcm")
    strict_checksum: bool = False

    model_config = {"frozen": True}

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in BACKEND_VERSIONS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @property
    def salt_size(self) -> int:
        return SALT_SIZE

    @property
    def format_version(self) -> str:
        """Envelope version stamped by ``seal`` for the configured backend."""
        return BACKEND_VERSIONS[self.cipher_backend]

    @classmethod
    def from_env(cls) -> "CryptoConfig":
        """Create CryptoConfig by loading values from environment.

        Returns:
            Populated CryptoConfig instance.
        """
        values: dict = {}
        iterations = os.environ.get("SAFEKEYS_KDF_ITERATIONS")
        if iterations is not None:
            values["kdf_iterations"] = iterations
        backend = os.environ.get("SAFEKEYS_CIPHER_BACKEND")
        if backend is not None:
            values["cipher_backend"] = backend
        strict = os.environ.get("SAFEKEYS_STRICT_CHECKSUM")
        if strict is not None:
            values["strict_checksum"] = strict.strip().lower() in _TRUE_VALUES
        config = cls(**values)
        logger.debug(
            "Crypto config loaded: iterations=%d backend=%s strict_checksum=%s",
            config.kdf_iterations, config.cipher_backend, config.strict_checksum,
        )
        return config
