"""
Vault Envelope Codec — Versioned container binding salt, nonce, ciphertext and metadata.

Wire format (JSON)::

    {
      "data": "<base64 ciphertext+tag>",
      "salt": "<base64 32-byte salt>",
      "iv": "<base64 12-byte nonce>",
      "version": "1.0.0",
      "iterations": 1000,
      "metadata": {"name": ..., "createdAt": ..., "lastModified": ...,
                   "entryCount": 3, "checksum": "<crc32 hex>"}
    }

Two payload layouts are accepted by ``open``:
- split: ``salt`` and ``iv`` carried as their own fields (written by default);
- embedded: ``salt`` and ``iv`` empty, ``data`` = base64(salt ‖ nonce ‖ ciphertext+tag).

``iterations`` is written only when the sealing codec uses a work factor
other than PBKDF2_ITERATIONS; without it the default count applies.

The format version is authenticated as AEAD associated data, so a tampered
``version`` field fails decryption.

Security Note:
    Structural validation always runs before any key derivation or
    decryption. Never log passwords, plaintext or ciphertext.
"""
import base64
import binascii
import logging
import warnings
import zlib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..timestamps import format_timestamp, utcnow
from .cipher import NONCE_SIZE, TAG_SIZE, AuthenticatedCipher, SealedBox
from .config import SUPPORTED_VERSIONS, CryptoConfig, version_algorithm
from .errors import (
    ChecksumMismatch,
    InvalidEnvelopeFormat,
    MissingMasterPassword,
    UnsupportedVersion,
    VaultCryptoError,
)
from .kdf import (
    MAX_ITERATIONS,
    MIN_ITERATIONS,
    PBKDF2_ITERATIONS,
    SALT_SIZE,
    KeyDerivation,
)
from .provider import RandomSource

logger = logging.getLogger("safekeys.crypto")

_METADATA_ALIASES = {
    "createdAt": "created_at",
    "lastModified": "last_modified",
    "entryCount": "entry_count",
}


# ---------------------------------------------------------------------------
# Envelope schema
# ---------------------------------------------------------------------------

class EnvelopeMetadata(BaseModel):
    """Clear-text description of a sealed vault."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    created_at: str
    last_modified: str
    entry_count: int = Field(ge=0)
    checksum: Optional[str] = None

    @field_validator("created_at", "last_modified", mode="before")
    @classmethod
    def format_datetime(cls, v: Any) -> Any:
        """Render datetime values in the canonical timestamp format."""
        if isinstance(v, datetime):
            return format_timestamp(v)
        return v


class EncryptedEnvelope(BaseModel):
    """Sealed vault as exchanged with storage."""

    data: str
    salt: str
    iv: str
    version: str
    iterations: Optional[int] = Field(default=None, ge=MIN_ITERATIONS, le=MAX_ITERATIONS)
    metadata: Optional[EnvelopeMetadata] = None


@dataclass(frozen=True)
class EnvelopeValidation:
    """Outcome of structural validation; never raised, always returned."""

    envelope: Optional[EncryptedEnvelope] = None
    error: Optional[VaultCryptoError] = None
    salt: bytes = b""
    nonce: bytes = b""
    ciphertext: bytes = b""

    @property
    def ok(self) -> bool:
        return self.error is None


def compute_checksum(data: bytes) -> str:
    """CRC-32 of the canonical plaintext as 8 lowercase hex digits."""
    return f"{zlib.crc32(data) & 0xFFFFFFFF:08x}"


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _invalid(reason: str) -> EnvelopeValidation:
    return EnvelopeValidation(error=InvalidEnvelopeFormat(reason))


def validate_envelope(raw: Any) -> EnvelopeValidation:
    """Check that ``raw`` is a well-formed envelope of a supported version.

    Performs no cryptographic operation.

    Args:
        raw: EncryptedEnvelope, mapping, or JSON text/bytes.

    Returns:
        EnvelopeValidation with decoded salt, nonce and ciphertext on
        success, or an InvalidEnvelopeFormat / UnsupportedVersion error.
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = orjson.loads(raw)
        except orjson.JSONDecodeError:
            return _invalid("not valid JSON")
    if isinstance(raw, EncryptedEnvelope):
        envelope = raw
    elif isinstance(raw, Mapping):
        try:
            envelope = EncryptedEnvelope.model_validate(dict(raw))
        except ValidationError as err:
            fields = sorted({".".join(str(p) for p in e["loc"]) for e in err.errors()})
            return _invalid(f"missing or mistyped fields: {', '.join(fields)}")
    else:
        return _invalid(f"expected a JSON object, got {type(raw).__name__}")

    if envelope.version not in SUPPORTED_VERSIONS:
        return EnvelopeValidation(
            envelope=envelope,
            error=UnsupportedVersion(envelope.version, SUPPORTED_VERSIONS),
        )

    try:
        data = _b64decode(envelope.data)
        salt = _b64decode(envelope.salt) if envelope.salt else b""
        nonce = _b64decode(envelope.iv) if envelope.iv else b""
    except (binascii.Error, ValueError, UnicodeEncodeError):
        return _invalid("data, salt and iv must be base64")

    if not salt and not nonce:
        # embedded layout
        if len(data) < SALT_SIZE + NONCE_SIZE + TAG_SIZE:
            return _invalid("embedded payload too short")
        salt = data[:SALT_SIZE]
        nonce = data[SALT_SIZE:SALT_SIZE + NONCE_SIZE]
        data = data[SALT_SIZE + NONCE_SIZE:]
    elif not salt or not nonce:
        return _invalid("salt and iv must both be present or both be empty")
    elif len(salt) != SALT_SIZE:
        return _invalid(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    elif len(nonce) != NONCE_SIZE:
        return _invalid(f"iv must be {NONCE_SIZE} bytes, got {len(nonce)}")
    elif len(data) < TAG_SIZE:
        return _invalid("ciphertext too short")

    return EnvelopeValidation(
        envelope=envelope, salt=salt, nonce=nonce, ciphertext=data,
    )


def dump_envelope(envelope: EncryptedEnvelope) -> str:
    """Serialize an envelope to compact JSON (camelCase metadata)."""
    return orjson.dumps(
        envelope.model_dump(by_alias=True, exclude_none=True)
    ).decode("utf-8")


def load_envelope(text: Union[str, bytes]) -> EncryptedEnvelope:
    """Parse and validate envelope JSON.

    Raises:
        InvalidEnvelopeFormat: If the text is not an envelope.
        UnsupportedVersion: If the version is not supported.
    """
    check = validate_envelope(text)
    if not check.ok:
        raise check.error
    return check.envelope


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

class EnvelopeCodec:
    """Seals plaintext bytes into envelopes and opens them again.

    Holds configuration and injected capabilities only; safe to share.
    """

    def __init__(
        self,
        config: Optional[CryptoConfig] = None,
        kdf: Optional[KeyDerivation] = None,
        cipher: Optional[AuthenticatedCipher] = None,
        random_source: Optional[RandomSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or CryptoConfig()
        self._kdf = kdf or KeyDerivation(
            iterations=self.config.kdf_iterations, random_source=random_source,
        )
        self._cipher = cipher or AuthenticatedCipher(random_source=random_source)
        self._clock = clock or utcnow

    def _complete_metadata(
        self,
        metadata: Union[EnvelopeMetadata, Mapping[str, Any], None],
        checksum: str,
    ) -> EnvelopeMetadata:
        now = format_timestamp(self._clock())
        fields: dict[str, Any] = {
            "name": "",
            "created_at": now,
            "last_modified": now,
            "entry_count": 0,
        }
        if isinstance(metadata, EnvelopeMetadata):
            fields.update(metadata.model_dump(exclude_none=True))
        elif metadata:
            for key, value in metadata.items():
                fields[_METADATA_ALIASES.get(key, key)] = value
        fields["checksum"] = checksum
        return EnvelopeMetadata(**fields)

    def seal(
        self,
        plaintext: bytes,
        master_password: str,
        metadata: Union[EnvelopeMetadata, Mapping[str, Any], None] = None,
        embedded: bool = False,
    ) -> EncryptedEnvelope:
        """Encrypt plaintext under a key derived from the master password.

        Args:
            plaintext: Canonical plaintext bytes.
            master_password: User's master password.
            metadata: Optional name/createdAt/lastModified/entryCount values;
                missing values are filled in, checksum is always computed.
            embedded: Write salt and nonce inside ``data`` instead of their
                own fields.

        Returns:
            EncryptedEnvelope stamped with the configured format version.

        Raises:
            MissingMasterPassword: If master_password is empty or None.
        """
        if not master_password:
            raise MissingMasterPassword()
        version = self.config.format_version
        salt = self._kdf.generate_salt()
        with self._kdf.derive(master_password, salt, version_algorithm(version)) as key:
            box = self._cipher.encrypt(plaintext, key, version.encode("ascii"))
        meta = self._complete_metadata(metadata, compute_checksum(plaintext))
        iterations = self._recorded_iterations()
        if embedded:
            envelope = EncryptedEnvelope(
                data=_b64encode(salt + box.nonce + box.ciphertext),
                salt="", iv="", version=version,
                iterations=iterations, metadata=meta,
            )
        else:
            envelope = EncryptedEnvelope(
                data=_b64encode(box.ciphertext),
                salt=_b64encode(salt),
                iv=_b64encode(box.nonce),
                version=version,
                iterations=iterations,
                metadata=meta,
            )
        logger.debug(
            "Sealed vault %r: version=%s entries=%d bytes=%d",
            meta.name, version, meta.entry_count, len(plaintext),
        )
        return envelope

    def open(
        self,
        envelope: Union[EncryptedEnvelope, Mapping[str, Any], str, bytes],
        master_password: Optional[str],
        strict_checksum: Optional[bool] = None,
    ) -> bytes:
        """Validate, then decrypt an envelope.

        Args:
            envelope: EncryptedEnvelope, mapping, or JSON text.
            master_password: User's master password.
            strict_checksum: Raise on checksum mismatch instead of warning;
                defaults to the configured value.

        Returns:
            Decrypted plaintext bytes.

        Raises:
            InvalidEnvelopeFormat: Structure invalid (no crypto attempted).
            UnsupportedVersion: Version outside SUPPORTED_VERSIONS.
            MissingMasterPassword: No password given.
            DecryptionError: Wrong password or tampered envelope.
            ChecksumMismatch: Only in strict checksum mode.
        """
        check = validate_envelope(envelope)
        if not check.ok:
            logger.debug("Rejected envelope: %s", check.error)
            raise check.error
        if not master_password:
            raise MissingMasterPassword()
        version = check.envelope.version
        iterations = check.envelope.iterations or PBKDF2_ITERATIONS
        with self._kdf.derive(
            master_password, check.salt, version_algorithm(version), iterations,
        ) as key:
            plaintext = self._cipher.decrypt(
                SealedBox(nonce=check.nonce, ciphertext=check.ciphertext),
                key,
                version.encode("ascii"),
            )
        self._verify_checksum(check.envelope, plaintext, strict_checksum)
        return plaintext

    def _recorded_iterations(self) -> Optional[int]:
        if self._kdf.iterations == PBKDF2_ITERATIONS:
            return None
        return self._kdf.iterations

    def _verify_checksum(
        self,
        envelope: EncryptedEnvelope,
        plaintext: bytes,
        strict: Optional[bool],
    ) -> None:
        metadata = envelope.metadata
        if metadata is None or not metadata.checksum:
            return
        actual = compute_checksum(plaintext)
        if metadata.checksum.lower() == actual:
            return
        mismatch = ChecksumMismatch(metadata.checksum, actual)
        if self.config.strict_checksum if strict is None else strict:
            raise mismatch
        logger.warning(
            "Checksum mismatch on vault %r after successful decryption", metadata.name,
        )
        warnings.warn(mismatch, stacklevel=3)

    def __repr__(self) -> str:
        return f"<EnvelopeCodec version={self.config.format_version} kdf={self._kdf!r}>"


_default_codec: Optional[EnvelopeCodec] = None


def default_codec() -> EnvelopeCodec:
    """Codec built from the environment on first use."""
    global _default_codec
    if _default_codec is None:
        _default_codec = EnvelopeCodec(CryptoConfig.from_env())
    return _default_codec


def seal(
    plaintext: bytes,
    master_password: str,
    metadata: Union[EnvelopeMetadata, Mapping[str, Any], None] = None,
) -> EncryptedEnvelope:
    """Seal with the default codec."""
    return default_codec().seal(plaintext, master_password, metadata)


def open_envelope(
    envelope: Union[EncryptedEnvelope, Mapping[str, Any], str, bytes],
    master_password: Optional[str],
) -> bytes:
    """Open with the default codec."""
    return default_codec().open(envelope, master_password)
