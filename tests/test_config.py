"""
Tests for CryptoConfig and format version mapping.
"""
import pytest
from pydantic import ValidationError

from safekeys.crypto import CURRENT_VERSION, PBKDF2_ITERATIONS, SUPPORTED_VERSIONS, CryptoConfig
from safekeys.crypto.config import version_algorithm


class TestCryptoConfig:
    """Tests for configuration defaults, validation and environment loading."""

    def test_defaults(self):
        """Test default configuration values."""
        config = CryptoConfig()
        assert config.kdf_iterations == PBKDF2_ITERATIONS
        assert config.cipher_backend == 'aesgcm'
        assert config.strict_checksum is False
        assert config.salt_size == 32
        assert config.format_version == CURRENT_VERSION == '1.0.0'

    def test_chacha_backend_version(self):
        """Test that the ChaCha20 backend stamps version 1.1.0."""
        config = CryptoConfig(cipher_backend='ChaCha20')
        assert config.cipher_backend == 'chacha20'
        assert config.format_version == '1.1.0'

    def test_unknown_backend(self):
        """Test that unsupported backends are rejected."""
        with pytest.raises(ValidationError):
            CryptoConfig(cipher_backend='des')

    def test_minimum_iterations(self):
        """Test that a trivially low work factor is rejected."""
        with pytest.raises(ValidationError):
            CryptoConfig(kdf_iterations=10)

    def test_maximum_iterations(self):
        """Test that an unbounded work factor is rejected."""
        with pytest.raises(ValidationError):
            CryptoConfig(kdf_iterations=10_000_001)

    def test_frozen(self):
        """Test that configuration is immutable."""
        config = CryptoConfig()
        with pytest.raises(ValidationError):
            config.strict_checksum = True

    def test_from_env(self, monkeypatch):
        """Test loading overrides from environment variables."""
        monkeypatch.setenv('SAFEKEYS_KDF_ITERATIONS', '2000')
        monkeypatch.setenv('SAFEKEYS_CIPHER_BACKEND', 'chacha20')
        monkeypatch.setenv('SAFEKEYS_STRICT_CHECKSUM', 'Yes')
        config = CryptoConfig.from_env()
        assert config.kdf_iterations == 2000
        assert config.cipher_backend == 'chacha20'
        assert config.strict_checksum is True

    def test_from_env_defaults(self, monkeypatch):
        """Test that missing variables keep defaults."""
        for name in ('SAFEKEYS_KDF_ITERATIONS', 'SAFEKEYS_CIPHER_BACKEND',
                     'SAFEKEYS_STRICT_CHECKSUM'):
            monkeypatch.delenv(name, raising=False)
        assert CryptoConfig.from_env() == CryptoConfig()

    def test_from_env_strict_false(self, monkeypatch):
        """Test that unrecognised flag values mean false."""
        monkeypatch.setenv('SAFEKEYS_STRICT_CHECKSUM', 'nope')
        assert CryptoConfig.from_env().strict_checksum is False


class TestVersions:
    """Tests for the supported version allow-list."""

    def test_supported_versions(self):
        assert SUPPORTED_VERSIONS == {'1.0.0': 'A256GCM', '1.1.0': 'C20P'}

    def test_version_algorithm(self):
        assert version_algorithm('1.1.0') == 'C20P'
        with pytest.raises(KeyError):
            version_algorithm('2.0.0')
