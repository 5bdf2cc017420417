"""
Vault Serializer — Vault ↔ canonical plaintext bytes.

The canonical form is the input to checksums and encryption, so it must be
deterministic: keys appear in model declaration order, absent optional
fields are omitted, and every timestamp is rendered as
``YYYY-MM-DDTHH:MM:SS.sssZ``. Re-serializing a deserialized vault yields the
same bytes.

Security Note:
    Canonical bytes contain every password in the vault. Never log them.
"""
import logging
from typing import Any, Union

import orjson
from pydantic import ValidationError

from .models import Vault

logger = logging.getLogger("safekeys.vault")


class VaultFormatError(ValueError):
    """Plaintext bytes do not describe a vault."""


def vault_to_dict(vault: Vault) -> dict[str, Any]:
    """JSON-ready mapping of a vault with camelCase keys and canonical timestamps."""
    return vault.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_canonical_bytes(vault: Vault) -> bytes:
    """Serialize a vault to its canonical plaintext bytes.

    Args:
        vault: Vault to serialize.

    Returns:
        orjson-encoded UTF-8 bytes.
    """
    return orjson.dumps(vault_to_dict(vault))


def from_canonical_bytes(data: Union[bytes, str]) -> Vault:
    """Rebuild a vault from canonical plaintext bytes.

    Args:
        data: Bytes produced by ``to_canonical_bytes`` (or equivalent JSON).

    Returns:
        Validated Vault.

    Raises:
        VaultFormatError: If the data is not JSON or not a valid vault.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise VaultFormatError(f"Vault plaintext is not valid JSON: {err}") from None
    if not isinstance(parsed, dict):
        raise VaultFormatError("Vault plaintext must be a JSON object")
    try:
        vault = Vault.model_validate(parsed)
    except ValidationError as err:
        raise VaultFormatError(
            f"Vault plaintext failed validation ({err.error_count()} error(s))"
        ) from err
    logger.debug("Deserialized vault with %d entries", len(vault.entries))
    return vault
