"""
Tests for PBKDF2 key derivation and salt generation.

Tests cover:
- Determinism for a (password, salt) pair
- Salt generation (size, randomness, injected random source)
- Edge-case passwords (empty, long, unicode)
- Argument validation
"""
import pytest

from safekeys.crypto import (
    DerivedKey,
    KeyDerivation,
    PBKDF2_ITERATIONS,
    SALT_SIZE,
    derive_key,
    generate_salt,
)


# --- Test Salt Generation ---

class TestGenerateSalt:
    """Tests for salt generation."""

    def test_salt_size(self, kdf):
        """Test that salts are 32 bytes."""
        assert len(kdf.generate_salt()) == SALT_SIZE == 32

    def test_two_salts_differ_and_are_not_zero(self):
        """Test two default salts differ and are not all zero."""
        first = generate_salt()
        second = generate_salt()
        assert len(first) == len(second) == 32
        assert first != second
        assert any(first)
        assert any(second)

    def test_injected_random_source(self, counting_random):
        """Test that the salt comes from the injected random source."""
        rng = counting_random
        kdf = KeyDerivation(iterations=1_000, random_source=rng)
        salt = kdf.generate_salt()
        assert rng.calls == [SALT_SIZE]
        assert salt == bytes((1 + i) % 256 for i in range(SALT_SIZE))


# --- Test Key Derivation ---

class TestDerive:
    """Tests for KeyDerivation.derive()."""

    def test_same_inputs_same_key(self, kdf):
        """Test derivation is deterministic."""
        salt = kdf.generate_salt()
        assert kdf.derive('correct-horse', salt) == kdf.derive('correct-horse', salt)

    def test_iterations_override(self, kdf):
        """Test that an explicit work factor matches an instance using it."""
        salt = kdf.generate_salt()
        other = KeyDerivation(iterations=2_000)
        assert kdf.derive('pw', salt, iterations=2_000) == other.derive('pw', salt)
        assert kdf.derive('pw', salt, iterations=2_000) != kdf.derive('pw', salt)

    def test_different_salt_different_key(self, kdf):
        """Test that changing the salt changes the key."""
        key1 = kdf.derive('correct-horse', kdf.generate_salt())
        key2 = kdf.derive('correct-horse', kdf.generate_salt())
        assert key1 != key2

    def test_different_password_different_key(self, kdf):
        """Test that changing the password changes the key."""
        salt = kdf.generate_salt()
        assert kdf.derive('correct-horse', salt) != kdf.derive('wrong-horse', salt)

    def test_key_is_256_bits(self, kdf):
        """Test derived key length and default algorithm."""
        key = kdf.derive('pw', kdf.generate_salt())
        assert isinstance(key, DerivedKey)
        assert len(key.material) == 32
        assert key.algorithm == 'A256GCM'

    def test_algorithm_label(self, kdf):
        """Test that the algorithm label is carried by the key."""
        key = kdf.derive('pw', kdf.generate_salt(), algorithm='C20P')
        assert key.algorithm == 'C20P'

    @pytest.mark.parametrize('password', [
        '',
        'x' * 10_000,
        'pässwörd-密码-🔑',
    ])
    def test_edge_case_passwords(self, kdf, password):
        """Test empty, long and unicode passwords derive valid keys."""
        salt = kdf.generate_salt()
        key = kdf.derive(password, salt)
        assert len(key.material) == 32
        assert key == kdf.derive(password, salt)

    def test_unicode_is_utf8_encoded(self, kdf):
        """Test that visually similar passwords give different keys."""
        salt = kdf.generate_salt()
        assert kdf.derive('\u00e9', salt) != kdf.derive('e\u0301', salt)

    def test_wrong_salt_size(self, kdf):
        """Test that a salt of the wrong size is rejected."""
        with pytest.raises(ValueError):
            kdf.derive('pw', b'short')

    def test_non_string_password(self, kdf):
        """Test that a bytes password is rejected."""
        with pytest.raises(TypeError):
            kdf.derive(b'pw', kdf.generate_salt())

    def test_iterations_must_be_positive(self):
        """Test that a zero work factor is rejected."""
        with pytest.raises(ValueError):
            KeyDerivation(iterations=0)

    def test_default_work_factor(self):
        """Test the production default iteration count."""
        assert PBKDF2_ITERATIONS == 600_000
        assert KeyDerivation().iterations == PBKDF2_ITERATIONS

    def test_module_level_derive_key(self):
        """Test derive_key with the production work factor."""
        salt = generate_salt()
        key = derive_key('correct-horse', salt)
        assert key == derive_key('correct-horse', salt)

    def test_repr_has_no_secrets(self, kdf):
        """Test repr only shows the work factor."""
        assert repr(kdf) == '<KeyDerivation PBKDF2-SHA256 iterations=1000>'
