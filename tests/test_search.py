"""
Tests for vault search and filters.
"""
from datetime import timedelta

from safekeys.timestamps import utcnow
from safekeys.vault import (
    EntryCategory,
    SearchOptions,
    add_custom_field,
    create_custom_field,
    entries_by_category,
    favorite_entries,
    recently_modified_entries,
    search_entries,
)


def _titles(result):
    return [e.title for e in result.entries]


class TestSearchEntries:
    """Tests for search_entries."""

    def test_no_query_returns_everything(self, sample_vault):
        result = search_entries(sample_vault)
        assert result.total_count == len(sample_vault.entries)
        assert result.search_time_ms >= 0

    def test_case_insensitive_by_default(self, sample_vault):
        result = search_entries(sample_vault, SearchOptions(query='BANK'))
        assert _titles(result) == ['Bank']

    def test_case_sensitive(self, sample_vault):
        assert search_entries(sample_vault, SearchOptions(query='BANK', case_sensitive=True)).total_count == 0

    def test_matches_username_url_notes_and_tags(self, sample_vault):
        assert _titles(search_entries(sample_vault, SearchOptions(query='alice'))) == ['Bank']
        assert _titles(search_entries(sample_vault, SearchOptions(query='mail.example'))) == ['Mail']
        assert _titles(search_entries(sample_vault, SearchOptions(query='router'))) == ['Wifi note']
        assert _titles(search_entries(sample_vault, SearchOptions(query='finance'))) == ['Bank']

    def test_exact_match(self, sample_vault):
        assert search_entries(sample_vault, SearchOptions(query='exam', exact_match=True)).total_count == 0
        result = search_entries(sample_vault, SearchOptions(query='example', exact_match=True))
        assert _titles(result) == ['Entrée 1', 'Mail']

    def test_custom_fields_are_searched(self, sample_vault):
        entry = add_custom_field(sample_vault.entries[2], create_custom_field('SSID', 'HomeNet'))
        vault = sample_vault.model_copy(update={'entries': [entry]})
        assert search_entries(vault, SearchOptions(query='homenet')).total_count == 1
        assert search_entries(vault, SearchOptions(query='ssid')).total_count == 1

    def test_category_filter(self, sample_vault):
        result = search_entries(sample_vault, SearchOptions(categories=[EntryCategory.SECURE_NOTE]))
        assert _titles(result) == ['Wifi note']

    def test_tag_filter_matches_any(self, sample_vault):
        result = search_entries(sample_vault, SearchOptions(tags=['finance', 'test']))
        assert _titles(result) == ['Entrée 1', 'Bank']

    def test_favorites_filter(self, sample_vault):
        assert _titles(search_entries(sample_vault, SearchOptions(favorites=True))) == ['Entrée 1']
        assert search_entries(sample_vault, SearchOptions(favorites=False)).total_count == 3

    def test_filters_combine_with_query(self, sample_vault):
        options = SearchOptions(query='pass', tags=['example'])
        assert search_entries(sample_vault, options).total_count == 0
        options = SearchOptions(query='example', categories=[EntryCategory.LOGIN])
        assert _titles(search_entries(sample_vault, options)) == ['Entrée 1', 'Mail']


class TestHelpers:
    """Tests for category, favorite and recency helpers."""

    def test_entries_by_category(self, sample_vault):
        assert [e.title for e in entries_by_category(sample_vault, EntryCategory.BANK_ACCOUNT)] == ['Bank']

    def test_favorite_entries(self, sample_vault):
        assert [e.title for e in favorite_entries(sample_vault)] == ['Entrée 1']

    def test_recently_modified(self, sample_vault):
        old = sample_vault.entries[0].model_copy(
            update={'updated_at': utcnow() - timedelta(days=30)}
        )
        vault = sample_vault.model_copy(update={'entries': [old, *sample_vault.entries[1:]]})
        recent = recently_modified_entries(vault)
        assert old not in recent
        assert len(recent) == 3
        assert [e.updated_at for e in recent] == sorted((e.updated_at for e in recent), reverse=True)
        assert len(recently_modified_entries(vault, days=60)) == 4
