"""
Vault Entries — Immutable create/update/delete operations on a Vault.

Every operation returns new model instances; the vault passed in is never
mutated. Invalid input is reported through a ValidationResult rather than
raised.
"""
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from ..timestamps import utcnow
from .models import (
    DEFAULT_VAULT_SETTINGS,
    CustomField,
    EntryCategory,
    EntryData,
    EntryUpdate,
    FieldType,
    Vault,
    VaultEntry,
    VaultSettings,
    new_id,
)
from .validation import (
    ValidationIssue,
    ValidationResult,
    validate_create_entry,
    validate_update_entry,
)

logger = logging.getLogger("safekeys.vault")

_ONE_MS = timedelta(milliseconds=1)

# entry fields where None in an update means "leave unchanged"
_NOT_NULLABLE = ("title", "tags", "favorite", "category", "custom_fields")


@dataclass
class EntryChange:
    """Result of add/update: the (possibly unchanged) vault and the new entry."""

    vault: Vault
    entry: Optional[VaultEntry]
    validation: ValidationResult = field(default_factory=ValidationResult)


@dataclass
class BulkAddResult:
    vault: Vault
    entries: list[VaultEntry]
    validation_results: list[ValidationResult]


def _later_than(previous: datetime) -> datetime:
    """Current time, pushed forward so it is strictly after ``previous``."""
    now = utcnow()
    if now <= previous:
        now = previous + _ONE_MS
    return now


def _payload(data: Union[Mapping[str, Any], EntryData]) -> dict[str, Any]:
    if isinstance(data, EntryData):
        return data.model_dump(exclude_unset=True)
    return dict(data)


def create_vault(
    name: str,
    description: Optional[str] = None,
    settings: Union[VaultSettings, Mapping[str, Any], None] = None,
) -> Vault:
    """Create an empty vault with default settings.

    Args:
        name: Display name of the vault.
        description: Optional free text.
        settings: Overrides merged onto the default settings.

    Returns:
        New Vault.
    """
    merged = DEFAULT_VAULT_SETTINGS.model_dump()
    if isinstance(settings, VaultSettings):
        merged.update(settings.model_dump(exclude_unset=True))
    elif settings:
        merged.update(VaultSettings.model_validate(settings).model_dump(exclude_unset=True))
    now = utcnow()
    return Vault(
        id=new_id(),
        name=name,
        description=description,
        entries=[],
        created_at=now,
        updated_at=now,
        settings=VaultSettings.model_validate(merged),
    )


def create_entry(data: Union[Mapping[str, Any], EntryData]) -> VaultEntry:
    """Build a complete entry from creation data (new id and timestamps).

    Raises:
        pydantic.ValidationError: If the data is not a valid entry.
    """
    payload = EntryData.model_validate(_payload(data))
    now = utcnow()
    return VaultEntry(
        id=new_id(),
        title=payload.title,
        username=payload.username,
        password=payload.password,
        url=payload.url,
        notes=payload.notes,
        tags=payload.tags or [],
        favorite=payload.favorite or False,
        category=payload.category or EntryCategory.LOGIN,
        custom_fields=payload.custom_fields or [],
        created_at=now,
        updated_at=now,
    )


def get_entry(vault: Vault, entry_id: str) -> Optional[VaultEntry]:
    return next((e for e in vault.entries if e.id == entry_id), None)


def add_entry(vault: Vault, data: Union[Mapping[str, Any], EntryData]) -> EntryChange:
    """Validate creation data and append a new entry to a copy of the vault."""
    validation = validate_create_entry(data)
    if not validation.is_valid:
        return EntryChange(vault=vault, entry=None, validation=validation)
    entry = create_entry(data)
    updated = vault.model_copy(
        update={
            "entries": [*vault.entries, entry],
            "updated_at": _later_than(vault.updated_at),
        }
    )
    logger.debug("Added entry %s to vault %s", entry.id, vault.id)
    return EntryChange(vault=updated, entry=entry, validation=validation)


def update_entry(
    vault: Vault,
    entry_id: str,
    changes: Union[Mapping[str, Any], EntryUpdate],
) -> EntryChange:
    """Apply a partial update to one entry.

    ``id`` and ``created_at`` are preserved; ``updated_at`` always moves
    strictly forward.

    Returns:
        EntryChange; on unknown id the validation carries ENTRY_NOT_FOUND
        and the vault is returned unchanged.
    """
    index = next((i for i, e in enumerate(vault.entries) if e.id == entry_id), None)
    if index is None:
        return EntryChange(
            vault=vault,
            entry=None,
            validation=ValidationResult(
                errors=[ValidationIssue("id", "Entry not found", "ENTRY_NOT_FOUND")]
            ),
        )
    validation = validate_update_entry(changes)
    if not validation.is_valid:
        return EntryChange(vault=vault, entry=None, validation=validation)

    original = vault.entries[index]
    update = EntryUpdate.model_validate(_payload(changes)).model_dump(exclude_unset=True)
    for name in _NOT_NULLABLE:
        if name in update and update[name] is None:
            del update[name]
    now = _later_than(original.updated_at)
    entry = VaultEntry.model_validate(
        {**original.model_dump(), **update, "updated_at": now}
    )
    entries = list(vault.entries)
    entries[index] = entry
    updated = vault.model_copy(
        update={"entries": entries, "updated_at": max(now, _later_than(vault.updated_at))}
    )
    return EntryChange(vault=updated, entry=entry, validation=validation)


def delete_entry(vault: Vault, entry_id: str) -> Vault:
    """Remove one entry; unknown ids return the vault unchanged."""
    return bulk_delete_entries(vault, [entry_id])


def bulk_add_entries(
    vault: Vault,
    entries_data: Iterable[Union[Mapping[str, Any], EntryData]],
) -> BulkAddResult:
    """Add several entries at once, all or nothing.

    If any item fails validation no entry is added and the original vault is
    returned alongside every item's validation result.
    """
    items = list(entries_data)
    results = [validate_create_entry(data) for data in items]
    if not all(r.is_valid for r in results):
        return BulkAddResult(vault=vault, entries=[], validation_results=results)
    created = [create_entry(data) for data in items]
    updated = vault.model_copy(
        update={
            "entries": [*vault.entries, *created],
            "updated_at": _later_than(vault.updated_at),
        }
    )
    logger.debug("Bulk added %d entries to vault %s", len(created), vault.id)
    return BulkAddResult(vault=updated, entries=created, validation_results=results)


def bulk_delete_entries(vault: Vault, entry_ids: Iterable[str]) -> Vault:
    ids = set(entry_ids)
    remaining = [e for e in vault.entries if e.id not in ids]
    if len(remaining) == len(vault.entries):
        return vault
    return vault.model_copy(
        update={"entries": remaining, "updated_at": _later_than(vault.updated_at)}
    )


# --- Custom fields ---

def create_custom_field(
    name: str,
    value: str = "",
    type: FieldType = FieldType.TEXT,
    hidden: bool = False,
) -> CustomField:
    """New custom field with a generated id.

    Raises:
        pydantic.ValidationError: If the name is blank or the value does
            not match the field type.
    """
    return CustomField(id=new_id(), name=name, value=value, type=type, hidden=hidden)


def _with_fields(entry: VaultEntry, fields: list[CustomField]) -> VaultEntry:
    return entry.model_copy(
        update={"custom_fields": fields, "updated_at": _later_than(entry.updated_at)}
    )


def add_custom_field(entry: VaultEntry, custom_field: CustomField) -> VaultEntry:
    return _with_fields(entry, [*entry.custom_fields, custom_field])


def update_custom_field(
    entry: VaultEntry,
    field_id: str,
    changes: Mapping[str, Any],
) -> VaultEntry:
    """Apply changes to one custom field; its id never changes.

    Raises:
        pydantic.ValidationError: If the changed field is invalid.
    """
    fields = []
    for item in entry.custom_fields:
        if item.id == field_id:
            values = {**item.model_dump(), **dict(changes), "id": item.id}
            item = CustomField.model_validate(values)
        fields.append(item)
    return _with_fields(entry, fields)


def remove_custom_field(entry: VaultEntry, field_id: str) -> VaultEntry:
    return _with_fields(entry, [f for f in entry.custom_fields if f.id != field_id])
