"""Duplicate detection over canonical contacts.

Contacts are walked oldest first, so the earliest record of each group is
kept and every later match is reported as its duplicate.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from rapidfuzz.distance import Levenshtein

from app.contacts.models import CanonicalContact
from app.database.repositories.contact_repository import ContactRepository
from app.logging.logger import Log

DEFAULT_FUZZY_THRESHOLD = 0.9
_NON_DIGIT = re.compile(r"\D")


class DedupMode(str, Enum):
    STRICT = "strict"
    NAME_ONLY = "name-only"
    NAME_COMPANY = "name-company"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class DuplicateEntry:
    contact: CanonicalContact
    canonical: CanonicalContact
    match_reason: str
    name_similarity: float | None = None
    company_similarity: float | None = None

    @property
    def duplicate_id(self) -> int | None:
        return self.contact.id

    @property
    def canonical_id(self) -> int | None:
        return self.canonical.id


@dataclass(frozen=True)
class DedupCluster:
    key: str
    canonical: CanonicalContact
    duplicates: tuple[DuplicateEntry, ...] = ()

    @property
    def canonical_id(self) -> int | None:
        return self.canonical.id

    @property
    def member_ids(self) -> list[int | None]:
        return [self.canonical.id, *(entry.duplicate_id for entry in self.duplicates)]


@dataclass(frozen=True)
class DedupResult:
    mode: DedupMode
    dry_run: bool
    unique: tuple[CanonicalContact, ...] = ()
    duplicates: tuple[DuplicateEntry, ...] = ()
    clusters: tuple[DedupCluster, ...] = ()
    deleted_count: int | None = None

    @property
    def total(self) -> int:
        return len(self.unique) + len(self.duplicates)


def levenshtein_similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in [0, 1]; symmetric, and 1.0 for equal strings."""
    return Levenshtein.normalized_similarity(a.lower(), b.lower())


def _norm(value: str | None) -> str:
    return (value or "").strip().lower()


def person_key(contact: CanonicalContact) -> str:
    first, last = _norm(contact.first_name), _norm(contact.last_name)
    if first and last:
        return f"{first}::{last}"
    return _norm(contact.name)


def company_key(contact: CanonicalContact) -> str:
    return _norm(contact.company)


def phone_key(contact: CanonicalContact) -> str:
    return _NON_DIGIT.sub("", contact.phones[0]) if contact.phones else ""


def email_key(contact: CanonicalContact) -> str:
    return _norm(contact.emails[0]) if contact.emails else ""


def _chronological(contacts: Sequence[CanonicalContact]) -> list[CanonicalContact]:
    """Oldest first; ties and unsaved contacts keep input order, unsaved last."""
    indexed = list(enumerate(contacts))
    indexed.sort(
        key=lambda pair: (
            pair[1].created_at is None,
            pair[1].created_at.timestamp() if pair[1].created_at is not None else 0.0,
            pair[0],
        )
    )
    return [contact for _, contact in indexed]


@dataclass
class _Group:
    key: str
    canonical: CanonicalContact
    duplicates: list[DuplicateEntry] = field(default_factory=list)


_EXACT_REASONS = {
    DedupMode.STRICT: "Exact match on all fields",
    DedupMode.NAME_ONLY: "Same first and last name",
    DedupMode.NAME_COMPANY: "Same name and company",
}


def find_duplicates(
    contacts: Sequence[CanonicalContact],
    mode: DedupMode,
    *,
    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
    dry_run: bool = True,
) -> DedupResult:
    """Group contacts by `mode` without touching storage or the input sequence."""
    unique: list[CanonicalContact] = []
    groups: list[_Group] = []
    exact_index: dict[tuple[str, ...], _Group] = {}
    fuzzy_index: list[tuple[str, str, _Group]] = []

    for contact in _chronological(contacts):
        person = person_key(contact)
        if not person:
            unique.append(contact)
            continue
        company = company_key(contact)

        if mode is DedupMode.FUZZY:
            match = _fuzzy_match(person, company, fuzzy_index, fuzzy_threshold)
            if match is None:
                group = _Group(f"{person}|FUZZY|{company}", contact)
                groups.append(group)
                fuzzy_index.append((person, company, group))
                unique.append(contact)
                continue
            group, name_score, company_score = match
            group.duplicates.append(
                DuplicateEntry(
                    contact=contact,
                    canonical=group.canonical,
                    match_reason=(
                        f"Fuzzy match (name: {round(name_score * 100)}%, "
                        f"company: {round(company_score * 100)}%)"
                    ),
                    name_similarity=name_score,
                    company_similarity=company_score,
                )
            )
            continue

        key = _exact_key(mode, contact, person, company)
        existing = exact_index.get(key)
        if existing is None:
            group = _Group("|".join(key), contact)
            groups.append(group)
            exact_index[key] = group
            unique.append(contact)
        else:
            existing.duplicates.append(
                DuplicateEntry(
                    contact=contact,
                    canonical=existing.canonical,
                    match_reason=_EXACT_REASONS[mode],
                )
            )

    clusters = tuple(
        DedupCluster(key=g.key, canonical=g.canonical, duplicates=tuple(g.duplicates))
        for g in groups
        if g.duplicates
    )
    duplicates = tuple(entry for cluster in clusters for entry in cluster.duplicates)
    return DedupResult(
        mode=mode,
        dry_run=dry_run,
        unique=tuple(unique),
        duplicates=duplicates,
        clusters=clusters,
    )


def _exact_key(
    mode: DedupMode, contact: CanonicalContact, person: str, company: str
) -> tuple[str, ...]:
    if mode is DedupMode.STRICT:
        return (person, company, phone_key(contact), email_key(contact))
    if mode is DedupMode.NAME_ONLY:
        return (person,)
    return (person, company)


def _fuzzy_match(
    person: str,
    company: str,
    seen: list[tuple[str, str, _Group]],
    threshold: float,
) -> tuple[_Group, float, float] | None:
    # First accepted entry above threshold wins; matching is not transitive.
    for seen_person, seen_company, group in seen:
        name_score = levenshtein_similarity(person, seen_person)
        if name_score < threshold:
            continue
        if not company or not seen_company:
            company_score = 1.0
        else:
            company_score = levenshtein_similarity(company, seen_company)
        if company_score >= threshold:
            return group, name_score, company_score
    return None


class Deduplicator:
    """Runs duplicate detection and, outside dry runs, deletes the duplicates."""

    def __init__(
        self,
        store: ContactRepository | None = None,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
    ) -> None:
        self._store = store
        self._fuzzy_threshold = fuzzy_threshold

    def deduplicate(
        self,
        contacts: Sequence[CanonicalContact],
        mode: DedupMode | str,
        dry_run: bool = True,
    ) -> DedupResult:
        mode = DedupMode(mode)
        result = find_duplicates(
            contacts, mode, fuzzy_threshold=self._fuzzy_threshold, dry_run=dry_run
        )
        Log.info(
            f"Dedup ({mode.value}): {result.total} contacts, "
            f"{len(result.duplicates)} duplicates in {len(result.clusters)} clusters"
        )
        if dry_run:
            return result

        if self._store is None:
            raise ValueError("A contact store is required to delete duplicates")
        ids = [entry.duplicate_id for entry in result.duplicates if entry.duplicate_id is not None]
        deleted = self._store.delete_by_ids(ids) if ids else 0
        Log.info(f"Dedup ({mode.value}): deleted {deleted} duplicate contacts")
        return DedupResult(
            mode=result.mode,
            dry_run=False,
            unique=result.unique,
            duplicates=result.duplicates,
            clusters=result.clusters,
            deleted_count=deleted,
        )

    def deduplicate_stored(self, mode: DedupMode | str, dry_run: bool = True) -> DedupResult:
        """Load every stored contact, oldest first, and deduplicate them."""
        if self._store is None:
            raise ValueError("A contact store is required to load contacts")
        return self.deduplicate(self._store.find_all_ordered(), mode, dry_run)
