"""
Vault Key Handles — In-memory derived keys, export strings and disposal.

A ``DerivedKey`` is owned by the operation that derived it. Nothing in this
package keeps keys in module-level state; callers that want an unlock cache
hold the exported string themselves and must treat it like key material.

Export format (URL-safe base64, unpadded) of the compact JSON document::

    {"kty": "oct", "alg": "A256GCM", "k": "<base64url key bytes>", "ext": true}

Security Note:
    ``wipe()`` zeroes the handle's own buffer. Copies made by the AEAD
    backend are outside our control; zeroization is best-effort.
"""
import base64
import binascii
import hmac
import logging
from typing import Literal

import orjson
from pydantic import BaseModel, ValidationError

from .errors import KeyDeserializationError

logger = logging.getLogger("safekeys.crypto")

KEY_LENGTH = 32  # AES-256 / ChaCha20
DEFAULT_ALGORITHM = "A256GCM"
KEY_ALGORITHMS = frozenset({"A256GCM", "C20P"})


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(text: str) -> bytes:
    """Strict URL-safe base64 decoding that tolerates missing padding."""
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)


class DerivedKey:
    """Symmetric 256-bit key material with an algorithm label.

    Usable as a context manager; the buffer is wiped on exit::

        with kdf.derive(password, salt) as key:
            box = cipher.encrypt(data, key)
    """

    __slots__ = ("_buffer", "_algorithm", "_wiped")

    def __init__(self, material: bytes, algorithm: str = DEFAULT_ALGORITHM):
        if not isinstance(material, (bytes, bytearray, memoryview)):
            raise TypeError("Key material must be bytes")
        if len(material) != KEY_LENGTH:
            raise ValueError(
                f"Key material must be exactly {KEY_LENGTH} bytes, got {len(material)}"
            )
        if algorithm not in KEY_ALGORITHMS:
            raise ValueError(f"Unsupported key algorithm: {algorithm}")
        self._buffer = bytearray(material)
        self._algorithm = algorithm
        self._wiped = False

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def wiped(self) -> bool:
        return self._wiped

    @property
    def material(self) -> bytes:
        """Raw key bytes.

        Raises:
            ValueError: If the key has been wiped.
        """
        if self._wiped:
            raise ValueError("Key material has been wiped")
        return bytes(self._buffer)

    def wipe(self) -> None:
        """Zero the key buffer. Idempotent."""
        for i in range(len(self._buffer)):
            self._buffer[i] = 0
        self._wiped = True

    def __enter__(self) -> "DerivedKey":
        return self

    def __exit__(self, *exc) -> None:
        self.wipe()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DerivedKey):
            return NotImplemented
        if self._wiped or other._wiped:
            return False
        return self._algorithm == other._algorithm and hmac.compare_digest(
            bytes(self._buffer), bytes(other._buffer)
        )

    __hash__ = None  # mutable (wipe); not hashable

    def __repr__(self) -> str:
        state = "wiped" if self._wiped else "active"
        return f"<DerivedKey alg={self._algorithm} {state}>"


class _KeyDocument(BaseModel):
    """Schema of the exported key document."""

    kty: Literal["oct"]
    alg: Literal["A256GCM", "C20P"]
    k: str
    ext: bool = True


def export_key(key: DerivedKey) -> str:
    """Serialize a derived key to an exportable string.

    The returned string is key material: never log or persist it in clear.

    Args:
        key: Active (not wiped) derived key.

    Returns:
        URL-safe base64 string of the key document.
    """
    document = {
        "kty": "oct",
        "alg": key.algorithm,
        "k": _b64url_encode(key.material),
        "ext": True,
    }
    return _b64url_encode(orjson.dumps(document))


def import_key(serialized: str) -> DerivedKey:
    """Rebuild a derived key from a string produced by ``export_key``.

    Args:
        serialized: Exported key string.

    Returns:
        DerivedKey with the original material and algorithm.

    Raises:
        KeyDeserializationError: If the string is not valid base64, does not
            wrap a key document, or the document describes an unusable key.
    """
    if not isinstance(serialized, str) or not serialized.strip():
        raise KeyDeserializationError("expected a non-empty string")
    try:
        raw = _b64url_decode(serialized.strip())
    except (binascii.Error, ValueError, UnicodeEncodeError):
        raise KeyDeserializationError("not valid base64") from None
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError:
        raise KeyDeserializationError("payload is not a key document") from None
    if not isinstance(parsed, dict):
        raise KeyDeserializationError("payload is not a key document")
    try:
        document = _KeyDocument.model_validate(parsed)
    except ValidationError as err:
        fields = sorted({".".join(str(p) for p in e["loc"]) for e in err.errors()})
        raise KeyDeserializationError(
            f"invalid key document fields: {', '.join(fields)}"
        ) from None
    try:
        material = _b64url_decode(document.k)
    except (binascii.Error, ValueError, UnicodeEncodeError):
        raise KeyDeserializationError("key value is not valid base64") from None
    if len(material) != KEY_LENGTH:
        raise KeyDeserializationError(
            f"key must be {KEY_LENGTH} bytes, got {len(material)}"
        )
    if not any(material):
        raise KeyDeserializationError("key material is all zero")
    logger.debug("Imported %s key", document.alg)
    return DerivedKey(material, algorithm=document.alg)

