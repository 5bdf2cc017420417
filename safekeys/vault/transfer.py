"""
Vault Transfer — Sealing, exporting and importing vaults.

Encrypted exports are EncryptedEnvelope instances produced by the crypto
core. Unencrypted exports are always wrapped in PlaintextExport so the two
can never be mistaken for each other.

Import accepts three inputs, detected from content:
- an encrypted envelope (JSON object with data and version),
- JSON: an array of entries or a full vault object,
- CSV with a header row that contains at least ``title``.

Invalid records are skipped and reported; cryptographic failures
(missing password, wrong password, malformed or unsupported envelope)
are raised.
"""
import csv
import io
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import orjson
from pydantic import ValidationError

from ..crypto import EncryptedEnvelope, EnvelopeCodec, MissingMasterPassword, default_codec
from ..timestamps import utcnow
from .models import EntryCategory, Vault, VaultEntry, new_id
from .serializer import from_canonical_bytes, to_canonical_bytes, vault_to_dict
from .validation import ValidationIssue, issues_from_error, validate_entry

logger = logging.getLogger("safekeys.vault")

CSV_HEADERS = ("title", "username", "password", "url", "notes", "category", "tags", "favorite")
TAG_SEPARATOR = ";"

ProgressCallback = Callable[[int], None]


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    VAULT = "vault"


@dataclass
class ExportOptions:
    format: ExportFormat = ExportFormat.VAULT
    include_passwords: bool = True
    categories: list[EntryCategory] = field(default_factory=list)
    encrypted: bool = True


@dataclass(frozen=True)
class PlaintextExport:
    """Unencrypted export; ``content`` holds every exported secret in clear."""

    format: ExportFormat
    content: str

    def __repr__(self) -> str:
        return f"<PlaintextExport format={self.format.value} chars={len(self.content)}>"


@dataclass
class ImportIssue:
    message: str
    line: Optional[int] = None
    details: list[ValidationIssue] = field(default_factory=list)


@dataclass
class ImportResult:
    vault: Optional[Vault] = None
    imported_count: int = 0
    skipped_count: int = 0
    errors: list[ImportIssue] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Sealing
# ---------------------------------------------------------------------------

def seal_vault(
    vault: Vault,
    master_password: str,
    codec: Optional[EnvelopeCodec] = None,
) -> EncryptedEnvelope:
    """Serialize and encrypt a vault; metadata is taken from the vault."""
    codec = codec or default_codec()
    metadata = {
        "name": vault.name,
        "created_at": vault.created_at,
        "last_modified": vault.updated_at,
        "entry_count": len(vault.entries),
    }
    return codec.seal(to_canonical_bytes(vault), master_password, metadata)


def open_vault(
    envelope: Union[EncryptedEnvelope, Mapping[str, Any], str, bytes],
    master_password: Optional[str],
    codec: Optional[EnvelopeCodec] = None,
) -> Vault:
    """Decrypt an envelope and rebuild the vault.

    Raises:
        VaultCryptoError: Any failure from the envelope codec.
        VaultFormatError: If the decrypted bytes are not a vault.
    """
    codec = codec or default_codec()
    return from_canonical_bytes(codec.open(envelope, master_password))


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def escape_csv_value(value: Optional[str]) -> str:
    """Quote a value containing a comma, quote or newline; double inner quotes."""
    if value is None:
        return ""
    text = str(value)
    if any(c in text for c in ',"\n\r'):
        return '"' + text.replace('"', '""') + '"'
    return text


def vault_to_csv(vault: Vault) -> str:
    lines = [",".join(CSV_HEADERS)]
    for entry in vault.entries:
        row = [
            entry.title,
            entry.username,
            entry.password,
            entry.url,
            entry.notes,
            entry.category.value if entry.category else "",
            TAG_SEPARATOR.join(entry.tags),
        ]
        lines.append(
            ",".join(escape_csv_value(v) for v in row) + "," + str(entry.favorite).lower()
        )
    return "\n".join(lines) + "\n"


def csv_to_rows(text: str) -> list[list[str]]:
    """Parse CSV text into rows, dropping blank lines."""
    reader = csv.reader(io.StringIO(text))
    return [row for row in reader if any(cell.strip() for cell in row)]


def _select_entries(vault: Vault, options: ExportOptions) -> Vault:
    entries: Iterable[VaultEntry] = vault.entries
    if options.categories:
        entries = [e for e in entries if e.category in options.categories]
    if not options.include_passwords:
        entries = [e.model_copy(update={"password": None}) for e in entries]
    return vault.model_copy(update={"entries": list(entries)})


def export_vault(
    vault: Vault,
    master_password: Optional[str] = None,
    options: Optional[ExportOptions] = None,
    codec: Optional[EnvelopeCodec] = None,
) -> Union[EncryptedEnvelope, PlaintextExport]:
    """Export a vault in the requested format.

    Args:
        vault: Vault to export; never modified.
        master_password: Required for encrypted vault exports.
        options: Format, password inclusion, category filter and
            encryption flag. Defaults to an encrypted vault export.
        codec: Envelope codec for encrypted exports.

    Returns:
        EncryptedEnvelope for encrypted vault exports, PlaintextExport
        otherwise.

    Raises:
        MissingMasterPassword: Encrypted export requested without a password.
    """
    options = options or ExportOptions()
    fmt = ExportFormat(options.format)
    if fmt is ExportFormat.VAULT and options.encrypted and not master_password:
        raise MissingMasterPassword("Master password is required for encrypted vault export")

    selected = _select_entries(vault, options)
    if fmt is ExportFormat.CSV:
        return PlaintextExport(fmt, vault_to_csv(selected))
    if fmt is ExportFormat.JSON:
        content = orjson.dumps(vault_to_dict(selected), option=orjson.OPT_INDENT_2)
        return PlaintextExport(fmt, content.decode("utf-8"))
    if not options.encrypted:
        logger.warning("Exporting vault %s without encryption", vault.id)
        return PlaintextExport(fmt, to_canonical_bytes(selected).decode("utf-8"))
    return seal_vault(selected, master_password, codec)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

class _Progress:
    """Reports monotonically increasing integer percentages."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._last = -1

    def __call__(self, value: float) -> None:
        value = max(0, min(100, int(value)))
        if self._callback is not None and value > self._last:
            self._last = value
            self._callback(value)

    def span(self, start: int, index: int, total: int) -> None:
        if total:
            self(start + (index * (100 - start)) // total)


def _is_envelope(parsed: Any) -> bool:
    return isinstance(parsed, dict) and {"data", "version"} <= parsed.keys()


def _collect_entries(
    records: list[Any],
    result: ImportResult,
    progress: _Progress,
    start: int,
    label: Callable[[int, Any], str],
) -> list[VaultEntry]:
    entries = []
    for index, record in enumerate(records):
        validation = validate_entry(record)
        if validation.is_valid:
            entries.append(VaultEntry.model_validate(record))
            result.imported_count += 1
        else:
            result.skipped_count += 1
            result.errors.append(
                ImportIssue(message=label(index, record), details=validation.errors)
            )
        progress.span(start, index + 1, len(records))
    return entries


def _entry_title(record: Any) -> str:
    if isinstance(record, Mapping) and record.get("title"):
        return str(record["title"])
    return "Unknown"


def _new_vault(name: str, entries: list[VaultEntry]) -> Vault:
    now = utcnow()
    return Vault(id=new_id(), name=name, entries=entries, created_at=now, updated_at=now)


def _import_vault_object(
    data: dict[str, Any],
    result: ImportResult,
    progress: _Progress,
    start: int,
) -> None:
    header = {k: v for k, v in data.items() if k != "entries"}
    try:
        vault = Vault.model_validate(header)
    except ValidationError as err:
        result.errors.append(
            ImportIssue(message="Invalid vault object", details=issues_from_error(err))
        )
        return
    records = data.get("entries") or []
    if not isinstance(records, list):
        result.errors.append(ImportIssue(message="Vault entries must be a list"))
        return
    entries = _collect_entries(
        records, result, progress, start,
        lambda i, record: f"Invalid entry: {_entry_title(record)}",
    )
    result.vault = vault.model_copy(update={"entries": entries})


def _import_json(parsed: Any, result: ImportResult, progress: _Progress) -> None:
    if isinstance(parsed, list):
        entries = _collect_entries(
            parsed, result, progress, 10,
            lambda i, record: f"Invalid entry at index {i}",
        )
        result.vault = _new_vault("Imported Vault", entries)
    elif isinstance(parsed, dict):
        _import_vault_object(parsed, result, progress, 10)
    else:
        result.errors.append(
            ImportIssue(message="JSON import must be an array of entries or a vault object")
        )


def _csv_record(headers: list[str], values: list[str]) -> dict[str, Any]:
    now = utcnow()
    record: dict[str, Any] = {"id": new_id(), "created_at": now, "updated_at": now}
    for header, value in zip(headers, values):
        if header == "tags":
            record["tags"] = [t.strip() for t in value.split(TAG_SEPARATOR) if t.strip()]
        elif header == "favorite":
            record["favorite"] = value.strip().lower() == "true"
        elif value != "":
            record[header] = value
    return record


def _import_csv(text: str, result: ImportResult, progress: _Progress) -> None:
    try:
        rows = csv_to_rows(text)
    except csv.Error as err:
        result.errors.append(ImportIssue(message=f"CSV parsing failed: {err}"))
        return
    if not rows:
        result.errors.append(ImportIssue(message="Empty CSV file"))
        return
    headers = [h.strip() for h in rows[0]]
    if "title" not in headers:
        result.errors.append(ImportIssue(message="CSV must contain at least a 'title' column"))
        return

    entries = []
    body = rows[1:]
    for index, values in enumerate(body):
        line = index + 2
        if len(values) != len(headers):
            result.skipped_count += 1
            result.errors.append(
                ImportIssue(message="Invalid CSV line: column count mismatch", line=line)
            )
        else:
            record = _csv_record(headers, values)
            validation = validate_entry(record)
            if validation.is_valid:
                entries.append(VaultEntry.model_validate(record))
                result.imported_count += 1
            else:
                result.skipped_count += 1
                result.errors.append(
                    ImportIssue(
                        message=f"Invalid entry: {_entry_title(record)}",
                        line=line,
                        details=validation.errors,
                    )
                )
        progress.span(10, index + 1, len(body))
    result.vault = _new_vault("Imported CSV Vault", entries)


def import_vault(
    data: Union[str, bytes],
    master_password: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    codec: Optional[EnvelopeCodec] = None,
) -> ImportResult:
    """Import a vault from envelope JSON, plain JSON or CSV.

    Args:
        data: Raw text (or UTF-8 bytes) to import.
        master_password: Required when ``data`` is an encrypted envelope.
        on_progress: Called with integer percentages, ending at 100.
        codec: Envelope codec used to open encrypted input.

    Returns:
        ImportResult with the imported vault (None when nothing usable was
        found), counts and per-record issues.

    Raises:
        VaultCryptoError: For encrypted input that cannot be opened.
    """
    result = ImportResult()
    progress = _Progress(on_progress)
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError:
            result.errors.append(ImportIssue(message="Import data is not UTF-8 text"))
            return result
    text = data.strip()
    progress(0)

    if text.startswith(("{", "[")):
        try:
            parsed = orjson.loads(text)
        except orjson.JSONDecodeError as err:
            result.errors.append(ImportIssue(message=f"JSON parsing failed: {err}"))
            return result
        if _is_envelope(parsed):
            progress(10)
            plaintext = (codec or default_codec()).open(parsed, master_password)
            progress(50)
            try:
                inner = orjson.loads(plaintext)
            except orjson.JSONDecodeError as err:
                result.errors.append(ImportIssue(message=f"Decrypted vault is not JSON: {err}"))
                return result
            if isinstance(inner, dict):
                _import_vault_object(inner, result, progress, 50)
            else:
                result.errors.append(ImportIssue(message="Decrypted vault must be a JSON object"))
        else:
            progress(10)
            _import_json(parsed, result, progress)
    elif "," in text and ("\n" in data or "\r" in data):
        progress(10)
        _import_csv(text, result, progress)
    else:
        result.errors.append(ImportIssue(message="Unsupported import format"))
        return result

    progress(100)
    if result.skipped_count:
        logger.warning("Import skipped %d invalid record(s)", result.skipped_count)
    logger.info("Import finished: %d imported", result.imported_count)
    return result
