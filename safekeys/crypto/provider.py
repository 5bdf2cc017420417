"""
Random capability injected into the crypto core.

Salts and nonces are drawn from a ``RandomSource`` passed to the key
derivation, cipher and envelope objects at construction time instead of a
process-wide crypto object, so tests can substitute a deterministic source.
"""
import secrets
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """Anything that returns ``size`` unpredictable bytes."""

    def token_bytes(self, size: int) -> bytes:
        ...


class SystemRandomSource:
    """Operating-system CSPRNG (``secrets``); safe for concurrent use."""

    def token_bytes(self, size: int) -> bytes:
        if size < 1:
            raise ValueError(f"Random byte count must be positive, got {size}")
        return secrets.token_bytes(size)

    def __repr__(self) -> str:
        return "<SystemRandomSource>"


DEFAULT_RANDOM = SystemRandomSource()
