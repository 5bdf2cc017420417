"""SafeKeys Vault — Credential records and the operations around them.

Records are pydantic models; every operation returns new instances and
leaves its inputs untouched. Encryption is delegated to ``safekeys.crypto``
through ``seal_vault`` / ``open_vault``.
"""

from .models import (
    VAULT_VERSION,
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
from .serializer import VaultFormatError, to_canonical_bytes, from_canonical_bytes
from .validation import (
    ValidationIssue,
    ValidationResult,
    validate_entry,
    validate_create_entry,
    validate_update_entry,
    validate_custom_field,
    password_strength_warnings,
)
from .entries import (
    EntryChange,
    BulkAddResult,
    create_vault,
    create_entry,
    add_entry,
    update_entry,
    delete_entry,
    get_entry,
    bulk_add_entries,
    bulk_delete_entries,
    create_custom_field,
    add_custom_field,
    update_custom_field,
    remove_custom_field,
)
from .search import (
    SearchOptions,
    SearchResult,
    search_entries,
    entries_by_category,
    favorite_entries,
    recently_modified_entries,
)
from .stats import (
    VaultStats,
    vault_stats,
    is_weak_password,
    weak_password_entries,
    duplicate_password_entries,
)
from .transfer import (
    ExportFormat,
    ExportOptions,
    PlaintextExport,
    ImportIssue,
    ImportResult,
    seal_vault,
    open_vault,
    export_vault,
    import_vault,
    vault_to_csv,
    csv_to_rows,
    escape_csv_value,
)

__all__ = [
    "VAULT_VERSION",
    "CustomField",
    "EntryCategory",
    "EntryData",
    "EntryUpdate",
    "FieldType",
    "Vault",
    "VaultEntry",
    "VaultSettings",
    "new_id",
    "VaultFormatError",
    "to_canonical_bytes",
    "from_canonical_bytes",
    "ValidationIssue",
    "ValidationResult",
    "validate_entry",
    "validate_create_entry",
    "validate_update_entry",
    "validate_custom_field",
    "password_strength_warnings",
    "EntryChange",
    "BulkAddResult",
    "create_vault",
    "create_entry",
    "add_entry",
    "update_entry",
    "delete_entry",
    "get_entry",
    "bulk_add_entries",
    "bulk_delete_entries",
    "create_custom_field",
    "add_custom_field",
    "update_custom_field",
    "remove_custom_field",
    "SearchOptions",
    "SearchResult",
    "search_entries",
    "entries_by_category",
    "favorite_entries",
    "recently_modified_entries",
    "VaultStats",
    "vault_stats",
    "is_weak_password",
    "weak_password_entries",
    "duplicate_password_entries",
    "ExportFormat",
    "ExportOptions",
    "PlaintextExport",
    "ImportIssue",
    "ImportResult",
    "seal_vault",
    "open_vault",
    "export_vault",
    "import_vault",
    "vault_to_csv",
    "csv_to_rows",
    "escape_csv_value",
]
