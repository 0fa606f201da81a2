from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from app.contacts.dedup import (
    Deduplicator,
    DedupMode,
    find_duplicates,
    levenshtein_similarity,
)
from app.contacts.models import CanonicalContact

BASE = datetime(2025, 1, 1, 12, 0, 0)


def _contact(
    contact_id: int,
    first: str | None,
    last: str | None,
    company: str | None = None,
    *,
    phones: tuple[str, ...] = (),
    emails: tuple[str, ...] = (),
    minutes: int | None = None,
) -> CanonicalContact:
    name = " ".join(p for p in (first, last) if p) or None
    return CanonicalContact(
        id=contact_id,
        name=name,
        first_name=first,
        last_name=last,
        company=company,
        phones=phones,
        emails=emails,
        created_at=BASE + timedelta(minutes=contact_id if minutes is None else minutes),
    )


class TestLevenshtein:
    def test_normalized_by_longer_string(self) -> None:
        assert levenshtein_similarity("kitten", "sitting") == pytest.approx(4 / 7)

    @pytest.mark.parametrize(("a", "b"), [("smith", "smyth"), ("jon", "john"), ("", "abc")])
    def test_symmetric(self, a: str, b: str) -> None:
        assert levenshtein_similarity(a, b) == levenshtein_similarity(b, a)

    def test_identical_is_one(self) -> None:
        assert levenshtein_similarity("Permian LLC", "permian llc") == 1.0

    def test_empty_strings(self) -> None:
        assert levenshtein_similarity("", "") == 1.0
        assert levenshtein_similarity("", "x") == 0.0


class TestExactModes:
    def test_name_company_keeps_earliest(self) -> None:
        later = _contact(2, "John", "Doe", "Acme")
        earlier = _contact(1, "John", "Doe", "Acme")

        result = find_duplicates([later, earlier], DedupMode.NAME_COMPANY)

        assert [c.id for c in result.unique] == [1]
        assert len(result.duplicates) == 1
        assert result.duplicates[0].duplicate_id == 2
        assert result.duplicates[0].canonical_id == 1
        assert result.duplicates[0].match_reason == "Same name and company"

    def test_name_company_separates_companies(self) -> None:
        contacts = [_contact(1, "John", "Doe", "Acme"), _contact(2, "John", "Doe", "Zeta")]

        result = find_duplicates(contacts, DedupMode.NAME_COMPANY)

        assert result.duplicates == ()

    def test_name_only_ignores_company(self) -> None:
        contacts = [_contact(1, "John", "Doe", "Acme"), _contact(2, "john", "DOE", "Zeta")]

        result = find_duplicates(contacts, DedupMode.NAME_ONLY)

        assert [e.duplicate_id for e in result.duplicates] == [2]
        assert result.clusters[0].member_ids == [1, 2]

    def test_strict_compares_phone_and_email(self) -> None:
        contacts = [
            _contact(1, "John", "Doe", phones=("(555) 123-4567",), emails=("j@x.com",)),
            _contact(2, "John", "Doe", phones=("555.123.4567",), emails=("J@X.com",)),
            _contact(3, "John", "Doe", phones=("555-999-0000",), emails=("j@x.com",)),
        ]

        result = find_duplicates(contacts, DedupMode.STRICT)

        assert [e.duplicate_id for e in result.duplicates] == [2]
        assert [c.id for c in result.unique] == [1, 3]

    def test_company_only_contacts_are_kept(self) -> None:
        contacts = [
            CanonicalContact(id=1, company="Acme", created_at=BASE),
            CanonicalContact(id=2, company="Acme", created_at=BASE + timedelta(minutes=1)),
        ]

        result = find_duplicates(contacts, DedupMode.NAME_COMPANY)

        assert len(result.unique) == 2
        assert result.duplicates == ()

    def test_unsaved_contacts_sort_last(self) -> None:
        unsaved = CanonicalContact(name="Jane Roe", first_name="Jane", last_name="Roe")
        stored = _contact(7, "Jane", "Roe")

        result = find_duplicates([unsaved, stored], DedupMode.NAME_ONLY)

        assert result.unique == (stored,)
        assert result.duplicates[0].contact is unsaved


class TestFuzzyMode:
    def test_matches_near_names(self) -> None:
        contacts = [
            _contact(1, "Jonathan", "Smithson", "Permian Royalty"),
            _contact(2, "Jonathan", "Smithsen", "Permian Royalty"),
        ]

        result = find_duplicates(contacts, DedupMode.FUZZY)

        entry = result.duplicates[0]
        assert entry.duplicate_id == 2
        assert entry.name_similarity is not None and entry.name_similarity >= 0.9
        assert entry.company_similarity == 1.0
        assert entry.match_reason.startswith("Fuzzy match (name: ")

    def test_missing_company_counts_as_match(self) -> None:
        contacts = [
            _contact(1, "Jonathan", "Smithson", "Permian Royalty"),
            _contact(2, "Jonathan", "Smithson"),
        ]

        result = find_duplicates(contacts, DedupMode.FUZZY)

        assert result.duplicates[0].match_reason == "Fuzzy match (name: 100%, company: 100%)"

    def test_threshold(self) -> None:
        contacts = [_contact(1, "Jon", "Doe"), _contact(2, "Jan", "Dee")]

        assert find_duplicates(contacts, DedupMode.FUZZY).duplicates == ()
        assert len(find_duplicates(contacts, DedupMode.FUZZY, fuzzy_threshold=0.5).duplicates) == 1


class TestDeduplicator:
    def test_dry_run_does_not_mutate(self) -> None:
        store = MagicMock()
        contacts = [_contact(1, "John", "Doe"), _contact(2, "John", "Doe")]
        snapshot = list(contacts)
        deduplicator = Deduplicator(store)

        first = deduplicator.deduplicate(contacts, "name-only", dry_run=True)
        second = deduplicator.deduplicate(contacts, DedupMode.NAME_ONLY, dry_run=True)

        assert contacts == snapshot
        assert first == second
        assert first.deleted_count is None
        store.delete_by_ids.assert_not_called()

    def test_apply_deletes_duplicates(self) -> None:
        store = MagicMock()
        store.delete_by_ids.return_value = 2
        contacts = [_contact(1, "A", "B"), _contact(2, "A", "B"), _contact(3, "A", "B")]

        result = Deduplicator(store).deduplicate(contacts, DedupMode.NAME_ONLY, dry_run=False)

        store.delete_by_ids.assert_called_once_with([2, 3])
        assert result.deleted_count == 2
        assert not result.dry_run

    def test_apply_without_duplicates_skips_store(self) -> None:
        store = MagicMock()

        result = Deduplicator(store).deduplicate([_contact(1, "A", "B")], DedupMode.STRICT, dry_run=False)

        assert result.deleted_count == 0
        store.delete_by_ids.assert_not_called()

    def test_apply_requires_store(self) -> None:
        with pytest.raises(ValueError):
            Deduplicator().deduplicate([_contact(1, "A", "B")], DedupMode.STRICT, dry_run=False)

    def test_deduplicate_stored_loads_contacts(self) -> None:
        store = MagicMock()
        store.find_all_ordered.return_value = [_contact(1, "A", "B"), _contact(2, "A", "B")]

        result = Deduplicator(store).deduplicate_stored("name-company")

        assert result.total == 2
        assert len(result.duplicates) == 1

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            Deduplicator().deduplicate([], "loose")
