"""
Vault Validation — Report errors and warnings for records without raising.

Errors make a record unusable; warnings (weak passwords, email-like
usernames that are not emails) are advisory.
"""
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from .models import CustomField, EntryData, EntryUpdate, VaultEntry, is_email


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    code: str


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


_PASSWORD_RULES = (
    (lambda p: len(p) >= 8, "WEAK_PASSWORD_LENGTH",
     "Password should be at least 8 characters long"),
    (lambda p: re.search(r"[A-Z]", p), "WEAK_PASSWORD_UPPERCASE",
     "Password should contain at least one uppercase letter"),
    (lambda p: re.search(r"[a-z]", p), "WEAK_PASSWORD_LOWERCASE",
     "Password should contain at least one lowercase letter"),
    (lambda p: re.search(r"[0-9]", p), "WEAK_PASSWORD_NUMBER",
     "Password should contain at least one number"),
    (lambda p: re.search(r"[^A-Za-z0-9]", p), "WEAK_PASSWORD_SPECIAL",
     "Password should contain at least one special character"),
)


def issues_from_error(err: ValidationError) -> list[ValidationIssue]:
    """Convert a pydantic ValidationError into ValidationIssue records."""
    issues = []
    for e in err.errors():
        message = e["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append(
            ValidationIssue(
                field=".".join(str(p) for p in e["loc"]),
                message=message,
                code=e["type"].upper(),
            )
        )
    return issues


def password_strength_warnings(password: str) -> list[ValidationIssue]:
    """Advisory warnings for a weak password. Empty password → no warnings."""
    if not password:
        return []
    return [
        ValidationIssue(field="password", message=message, code=code)
        for check, code, message in _PASSWORD_RULES
        if not check(password)
    ]


def _as_mapping(data: Union[Mapping[str, Any], BaseModel]) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_none=True)
    return dict(data)


def _warnings(data: Mapping[str, Any]) -> list[ValidationIssue]:
    warnings = []
    password = data.get("password")
    if isinstance(password, str):
        warnings.extend(password_strength_warnings(password))
    username = data.get("username")
    if isinstance(username, str) and "@" in username and not is_email(username):
        warnings.append(
            ValidationIssue(
                field="username",
                message="Username appears to be an email but format is invalid",
                code="INVALID_EMAIL_FORMAT",
            )
        )
    return warnings


def _validate(model: type[BaseModel], data: Any, with_warnings: bool = True) -> ValidationResult:
    if not isinstance(data, (Mapping, BaseModel)):
        return ValidationResult(
            errors=[ValidationIssue("", "Record must be an object", "INVALID_TYPE")]
        )
    values = _as_mapping(data)
    result = ValidationResult()
    try:
        model.model_validate(values)
    except ValidationError as err:
        result.errors.extend(issues_from_error(err))
    if with_warnings:
        result.warnings.extend(_warnings(values))
    return result


def validate_entry(entry: Union[Mapping[str, Any], VaultEntry]) -> ValidationResult:
    """Validate a complete entry (id and timestamps required)."""
    return _validate(VaultEntry, entry)


def validate_create_entry(data: Union[Mapping[str, Any], EntryData]) -> ValidationResult:
    """Validate data for a new entry."""
    return _validate(EntryData, data)


def validate_update_entry(data: Union[Mapping[str, Any], EntryUpdate]) -> ValidationResult:
    """Validate a partial entry update."""
    return _validate(EntryUpdate, data)


def validate_custom_field(data: Union[Mapping[str, Any], CustomField]) -> ValidationResult:
    """Validate custom field data (no warnings)."""
    return _validate(CustomField, data, with_warnings=False)
