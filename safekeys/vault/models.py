"""
Vault Records — Credential entries, custom fields and the vault container.

Models validate on construction and render camelCase keys with canonical
UTC millisecond timestamps when dumped in JSON mode::

    entry.model_dump(mode="json", by_alias=True, exclude_none=True)
"""
import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..timestamps import format_timestamp, normalize_timestamp

VAULT_VERSION = "1.0.0"

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")
_URL_ADAPTER = TypeAdapter(AnyUrl)

NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def new_id() -> str:
    """Unique record identifier."""
    return uuid.uuid4().hex


def is_email(value: str) -> bool:
    return bool(_EMAIL_PATTERN.match(value))


def is_url(value: str) -> bool:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


class EntryCategory(str, Enum):
    LOGIN = "login"
    SECURE_NOTE = "secure_note"
    CREDIT_CARD = "credit_card"
    IDENTITY = "identity"
    SOFTWARE_LICENSE = "software_license"
    BANK_ACCOUNT = "bank_account"
    OTHER = "other"


class FieldType(str, Enum):
    TEXT = "text"
    PASSWORD = "password"
    EMAIL = "email"
    URL = "url"
    NUMBER = "number"
    DATE = "date"
    TEXTAREA = "textarea"


class RecordModel(BaseModel):
    """Base for vault records: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimestampedModel(RecordModel):
    """Records carrying ``created_at`` / ``updated_at`` fields."""

    @field_validator("created_at", "updated_at", check_fields=False)
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        """Store timestamps as UTC with millisecond precision."""
        return normalize_timestamp(v)

    @field_serializer("created_at", "updated_at", when_used="json", check_fields=False)
    def serialize_dates(self, v: datetime) -> str:
        return format_timestamp(v)


class CustomField(RecordModel):
    id: str = Field(default_factory=new_id, min_length=1)
    name: NonEmptyText
    value: str = ""
    type: FieldType = FieldType.TEXT
    hidden: bool = False

    @model_validator(mode="after")
    def check_value_type(self) -> "CustomField":
        """Type-specific validation of non-empty values."""
        checks = {
            FieldType.EMAIL: is_email,
            FieldType.URL: is_url,
            FieldType.NUMBER: is_number,
        }
        check = checks.get(self.type)
        if self.value and check is not None and not check(self.value):
            raise ValueError("Invalid value for the specified field type")
        return self


class EntryFieldChecks(RecordModel):
    """Field rules shared by entries and entry create/update payloads."""

    @field_validator("url", check_fields=False)
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not is_url(v):
            raise ValueError("Invalid URL format")
        return v

    @field_validator("username", check_fields=False)
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v and "@" in v and not is_email(v):
            raise ValueError("Username appears to be an email but format is invalid")
        return v


class VaultEntry(EntryFieldChecks, TimestampedModel):
    id: str = Field(min_length=1)
    title: NonEmptyText
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    favorite: bool = False
    category: EntryCategory = EntryCategory.LOGIN
    custom_fields: list[CustomField] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class EntryData(EntryFieldChecks):
    """Payload for creating an entry; id and timestamps are assigned."""

    title: NonEmptyText
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    favorite: Optional[bool] = None
    category: Optional[EntryCategory] = None
    custom_fields: Optional[list[CustomField]] = None


class EntryUpdate(EntryData):
    """Partial update of an entry; only fields that are set are applied."""

    title: Optional[NonEmptyText] = None


# --- Settings ---

class PasswordGeneratorSettings(RecordModel):
    length: int = Field(default=16, ge=4, le=256)
    include_uppercase: bool = True
    include_lowercase: bool = True
    include_numbers: bool = True
    include_symbols: bool = True
    exclude_similar: bool = False
    custom_symbols: Optional[str] = None


class SecuritySettings(RecordModel):
    lock_timeout: int = Field(default=15, ge=0)  # minutes
    require_master_password_on_start: bool = True
    enable_biometric: bool = False
    max_failed_attempts: int = Field(default=5, ge=1)


class UISettings(RecordModel):
    theme: Literal["light", "dark", "auto"] = "auto"
    language: str = "en"
    show_favorites: bool = True
    default_view: Literal["list", "grid", "cards"] = "list"


class VaultSettings(RecordModel):
    password_generator: Optional[PasswordGeneratorSettings] = Field(
        default_factory=PasswordGeneratorSettings
    )
    security: Optional[SecuritySettings] = Field(default_factory=SecuritySettings)
    ui: Optional[UISettings] = Field(default_factory=UISettings)


DEFAULT_VAULT_SETTINGS = VaultSettings()


class Vault(TimestampedModel):
    id: str = Field(default_factory=new_id, min_length=1)
    name: str
    description: Optional[str] = None
    entries: list[VaultEntry] = Field(default_factory=list)
    version: str = VAULT_VERSION
    created_at: datetime
    updated_at: datetime
    settings: Optional[VaultSettings] = None
