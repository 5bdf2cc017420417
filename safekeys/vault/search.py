"""
Vault Search — Text search and filters over vault entries.
"""
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from ..timestamps import utcnow
from .models import EntryCategory, Vault, VaultEntry


@dataclass
class SearchOptions:
    query: str = ""
    categories: list[EntryCategory] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    favorites: Optional[bool] = None
    case_sensitive: bool = False
    exact_match: bool = False

    @property
    def has_filters(self) -> bool:
        return bool(self.query or self.categories or self.tags or self.favorites is not None)


@dataclass
class SearchResult:
    entries: list[VaultEntry]
    total_count: int
    search_time_ms: float


def _searchable_values(entry: VaultEntry) -> Iterable[str]:
    for value in (entry.title, entry.username, entry.url, entry.notes):
        if value:
            yield value
    yield from entry.tags
    for custom in entry.custom_fields:
        yield custom.name
        if custom.value:
            yield custom.value


def _matches(entry: VaultEntry, options: SearchOptions) -> bool:
    if options.categories and entry.category not in options.categories:
        return False
    if options.tags and not set(entry.tags) & set(options.tags):
        return False
    if options.favorites is not None and entry.favorite != options.favorites:
        return False
    if not options.query:
        return True

    query = options.query if options.case_sensitive else options.query.lower()
    for value in _searchable_values(entry):
        if not options.case_sensitive:
            value = value.lower()
        if (value == query) if options.exact_match else (query in value):
            return True
    return False


def search_entries(vault: Vault, options: Optional[SearchOptions] = None) -> SearchResult:
    """Find entries matching a query and filters.

    The query is matched against title, username, url, notes, tags and
    custom field names and values. Filters (categories, tags, favorites)
    are combined with AND; ``tags`` matches entries having any of the
    given tags. With no query and no filters every entry is returned.
    """
    options = options or SearchOptions()
    started = time.perf_counter()
    if options.has_filters:
        entries = [e for e in vault.entries if _matches(e, options)]
    else:
        entries = list(vault.entries)
    return SearchResult(
        entries=entries,
        total_count=len(entries),
        search_time_ms=(time.perf_counter() - started) * 1000,
    )


def entries_by_category(vault: Vault, category: EntryCategory) -> list[VaultEntry]:
    return [e for e in vault.entries if e.category == category]


def favorite_entries(vault: Vault) -> list[VaultEntry]:
    return [e for e in vault.entries if e.favorite]


def recently_modified_entries(vault: Vault, days: int = 7) -> list[VaultEntry]:
    """Entries updated within the last ``days`` days, most recent first."""
    cutoff = utcnow() - timedelta(days=days)
    recent = [e for e in vault.entries if e.updated_at > cutoff]
    return sorted(recent, key=lambda e: e.updated_at, reverse=True)
