"""
Tests for record validation (errors and advisory warnings).
"""
import pytest

from safekeys.vault import (
    password_strength_warnings,
    validate_create_entry,
    validate_custom_field,
    validate_entry,
    validate_update_entry,
)


def _codes(issues):
    return {issue.code for issue in issues}


# --- Test Entry Validation ---

class TestValidateCreateEntry:
    """Tests for validate_create_entry."""

    def test_minimal_entry(self):
        result = validate_create_entry({'title': 'Mail'})
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize('title', ['', '   '])
    def test_blank_title(self, title):
        result = validate_create_entry({'title': title})
        assert not result.is_valid
        assert result.errors[0].field == 'title'

    def test_missing_title(self):
        result = validate_create_entry({'username': 'bob'})
        assert not result.is_valid
        assert 'MISSING' in _codes(result.errors)

    def test_invalid_url(self):
        result = validate_create_entry({'title': 'x', 'url': 'not a url'})
        assert not result.is_valid
        issue = result.errors[0]
        assert issue.field == 'url'
        assert issue.message == 'Invalid URL format'
        assert issue.code == 'VALUE_ERROR'

    def test_invalid_email_username(self):
        """Test an '@' username that is not an email is an error and a warning."""
        result = validate_create_entry({'title': 'x', 'username': 'bob@localhost'})
        assert not result.is_valid
        assert 'INVALID_EMAIL_FORMAT' in _codes(result.warnings)

    def test_plain_username_is_fine(self):
        result = validate_create_entry({'title': 'x', 'username': 'bob'})
        assert result.is_valid
        assert result.warnings == []

    def test_weak_password_is_only_a_warning(self):
        result = validate_create_entry({'title': 'x', 'password': 'abc'})
        assert result.is_valid
        assert _codes(result.warnings) == {
            'WEAK_PASSWORD_LENGTH',
            'WEAK_PASSWORD_UPPERCASE',
            'WEAK_PASSWORD_NUMBER',
            'WEAK_PASSWORD_SPECIAL',
        }

    def test_not_a_mapping(self):
        result = validate_create_entry(['title'])
        assert not result.is_valid
        assert result.errors[0].code == 'INVALID_TYPE'


class TestValidateEntry:
    """Tests for validation of complete entries."""

    def test_requires_id_and_timestamps(self):
        result = validate_entry({'title': 'x'})
        assert not result.is_valid
        assert 'id' in {issue.field for issue in result.errors}

    def test_complete_entry(self, sample_vault):
        result = validate_entry(sample_vault.entries[1])
        assert result.is_valid
        assert result.warnings == []


class TestValidateUpdate:
    """Tests for partial update validation."""

    def test_partial_update(self):
        assert validate_update_entry({'notes': 'new'}).is_valid

    def test_empty_title_rejected(self):
        assert not validate_update_entry({'title': ''}).is_valid


class TestValidateCustomField:
    """Tests for custom field validation."""

    def test_valid_field(self):
        result = validate_custom_field({'name': 'PIN', 'value': '1234', 'type': 'number'})
        assert result.is_valid

    def test_type_mismatch(self):
        result = validate_custom_field({'name': 'Mail', 'value': 'nope', 'type': 'email'})
        assert not result.is_valid
        assert result.errors[0].message == 'Invalid value for the specified field type'

    def test_unknown_type(self):
        assert not validate_custom_field({'name': 'x', 'type': 'color'}).is_valid


# --- Test Password Warnings ---

class TestPasswordStrength:
    """Tests for password_strength_warnings."""

    def test_strong_password(self):
        assert password_strength_warnings('Str0ng!Passw0rd') == []

    def test_empty_password(self):
        assert password_strength_warnings('') == []

    def test_all_fields_are_password(self):
        warnings = password_strength_warnings('ABCDEFGH')
        assert {w.field for w in warnings} == {'password'}
        assert _codes(warnings) == {
            'WEAK_PASSWORD_LOWERCASE',
            'WEAK_PASSWORD_NUMBER',
            'WEAK_PASSWORD_SPECIAL',
        }
