"""Shared fixtures: fast crypto objects and sample vaults."""
import itertools

import pytest

from safekeys.crypto import (
    AuthenticatedCipher,
    CryptoConfig,
    EnvelopeCodec,
    KeyDerivation,
)
from safekeys.vault import EntryCategory, bulk_add_entries, create_vault

FAST_ITERATIONS = 1_000


class CountingRandom:
    """Deterministic RandomSource: each call returns the next block of a counter."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self.calls = []

    def token_bytes(self, size: int) -> bytes:
        self.calls.append(size)
        value = next(self._counter)
        return bytes((value + i) % 256 for i in range(size))


class SpyKeyDerivation(KeyDerivation):
    """KeyDerivation recording every derive() call."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.derive_calls = 0

    def derive(self, password, salt, algorithm='A256GCM', iterations=None):
        self.derive_calls += 1
        return super().derive(password, salt, algorithm, iterations)


@pytest.fixture
def counting_random():
    return CountingRandom()


@pytest.fixture
def random_factory():
    """Factory for independent deterministic random sources."""
    return CountingRandom


@pytest.fixture
def fast_config():
    return CryptoConfig(kdf_iterations=FAST_ITERATIONS)


@pytest.fixture
def kdf():
    """KeyDerivation with a low work factor."""
    return KeyDerivation(iterations=FAST_ITERATIONS)


@pytest.fixture
def cipher():
    return AuthenticatedCipher()


@pytest.fixture
def codec(fast_config):
    """EnvelopeCodec with a low work factor."""
    return EnvelopeCodec(fast_config)


@pytest.fixture
def spy_kdf():
    return SpyKeyDerivation(iterations=FAST_ITERATIONS)


@pytest.fixture
def spy_codec(fast_config, spy_kdf):
    return EnvelopeCodec(fast_config, kdf=spy_kdf)


@pytest.fixture
def empty_vault():
    return create_vault('Personal', description='Test vault')


@pytest.fixture
def sample_vault(empty_vault):
    """Vault holding a few entries of different categories."""
    result = bulk_add_entries(empty_vault, [
        {
            'title': 'Entrée 1',
            'username': 'user1',
            'password': 'pass1',
            'url': 'https://example.com',
            'tags': ['test', 'example'],
            'favorite': True,
        },
        {
            'title': 'Bank',
            'username': 'alice@example.com',
            'password': 'Str0ng!Passw0rd',
            'category': EntryCategory.BANK_ACCOUNT,
            'tags': ['finance'],
        },
        {
            'title': 'Wifi note',
            'notes': 'Router is in the "hall", next to the door',
            'category': EntryCategory.SECURE_NOTE,
        },
        {
            'title': 'Mail',
            'username': 'bob',
            'password': 'pass1',
            'url': 'https://mail.example.org/login',
            'tags': ['example'],
        },
    ])
    assert all(r.is_valid for r in result.validation_results)
    return result.vault
