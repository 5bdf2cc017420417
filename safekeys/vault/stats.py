"""
Vault Statistics — Counts and password-hygiene indicators.
"""
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..timestamps import normalize_timestamp, utcnow
from .models import EntryCategory, Vault, VaultEntry

OLD_PASSWORD_DAYS = 90
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_CHARACTER_CLASSES = (
    re.compile(r"[a-z]"),
    re.compile(r"[A-Z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[^a-zA-Z0-9]"),
)


@dataclass
class VaultStats:
    total_entries: int = 0
    category_counts: dict[EntryCategory, int] = field(default_factory=dict)
    tag_counts: dict[str, int] = field(default_factory=dict)
    last_activity: datetime = EPOCH
    weak_passwords: int = 0
    duplicate_passwords: int = 0
    old_passwords: int = 0


def is_weak_password(password: str) -> bool:
    """Shorter than 8 characters, or drawn from a single character class."""
    if len(password) < 8:
        return True
    classes = sum(1 for pattern in _CHARACTER_CLASSES if pattern.search(password))
    return classes <= 1


def _group_by_password(vault: Vault) -> dict[str, list[VaultEntry]]:
    groups: dict[str, list[VaultEntry]] = {}
    for entry in vault.entries:
        if entry.password:
            groups.setdefault(entry.password, []).append(entry)
    return groups


def vault_stats(vault: Vault, now: Optional[datetime] = None) -> VaultStats:
    """Compute statistics for a vault.

    Args:
        vault: Vault to analyze.
        now: Reference time for the "old password" cutoff; naive values
            are taken as UTC.

    Returns:
        VaultStats. ``duplicate_passwords`` counts groups of entries sharing
        a password, not entries.
    """
    now = normalize_timestamp(now) if now is not None else utcnow()
    cutoff = now - timedelta(days=OLD_PASSWORD_DAYS)
    categories = Counter({category: 0 for category in EntryCategory})
    tags: Counter = Counter()
    stats = VaultStats(total_entries=len(vault.entries))

    for entry in vault.entries:
        if entry.updated_at > stats.last_activity:
            stats.last_activity = entry.updated_at
        categories[entry.category or EntryCategory.LOGIN] += 1
        tags.update(entry.tags)
        if entry.password:
            if is_weak_password(entry.password):
                stats.weak_passwords += 1
            if entry.updated_at < cutoff:
                stats.old_passwords += 1

    stats.category_counts = dict(categories)
    stats.tag_counts = dict(tags)
    stats.duplicate_passwords = len(duplicate_password_entries(vault))
    return stats


def weak_password_entries(vault: Vault) -> list[VaultEntry]:
    return [e for e in vault.entries if e.password and is_weak_password(e.password)]


def duplicate_password_entries(vault: Vault) -> list[list[VaultEntry]]:
    """Groups of two or more entries sharing the same password."""
    return [group for group in _group_by_password(vault).values() if len(group) > 1]
