"""Mapping of raw model output into CanonicalContact records.

Every helper here is pure: no I/O, no logging except in normalize_many().
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from app.contacts.exceptions import ContactValidationError
from app.contacts.models import MAX_EMAILS, MAX_PHONES, CanonicalContact
from app.logging.logger import Log

MAX_NAME_LENGTH = 255
MAX_PHONE_LENGTH = 20
MIN_PHONE_DIGITS = 7
MIN_EMAIL_LENGTH = 5
MAX_EMAIL_LENGTH = 254

LEGAL_INDICATORS = (
    "attorney",
    "attorneys",
    "atty",
    "lawyer",
    "law firm",
    "law office",
    "law offices",
    "esquire",
    "esq",
    "j.d.",
    "juris doctor",
    "p.c.",
    "p.a.",
    "llp",
    "pllc",
    "counsel",
    "counselor",
    "legal representative",
    "legal department",
    "legal services",
    "legal counsel",
    "law group",
    "law associates",
    "legal aid",
    "paralegal",
    "bar association",
    "legal clinic",
    "advocate",
)
_LEGAL_PATTERN = re.compile(
    "|".join(rf"(?<!\w){re.escape(term)}(?!\w)" for term in LEGAL_INDICATORS),
    re.IGNORECASE,
)

OWNERSHIP_TYPES = {
    "WI": "WI",
    "WORKING INTEREST": "WI",
    "ORRI": "ORRI",
    "OVERRIDING ROYALTY INTEREST": "ORRI",
    "OVERRIDING ROYALTY": "ORRI",
    "UMI": "UMI",
    "UNLEASED MINERAL INTEREST": "UMI",
}

_NULL_STRINGS = frozenset({"", "null", "none", "n/a", "na", "unknown"})
# Placeholders that can never be a real name or company; "Na" or "Unknown" can.
_NULL_IDENTITY_STRINGS = frozenset({"", "null", "n/a"})
_PERCENT = re.compile(r"(-?\d+(?:\.\d+)?)\s*%")
_FRACTION = re.compile(r"(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)")
_PLAIN_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_STATE_ZIP = re.compile(r"([A-Z]{2})\s+(\d{5}(?:-\d{4})?)")
_CITY_STATE_ZIP = re.compile(r"^(.*?)\s+([A-Z]{2})\s+(\d{5}(?:-\d{4})?)$")
_UNIT = re.compile(
    r"(?<!\w)(?:apt\.?|apartment|suite|ste\.?|unit)\s*#?\s*[a-z0-9-]+|#\s*[a-z0-9-]+",
    re.IGNORECASE,
)
_PHONE_LABEL = re.compile(r"\([^)\d]*\)|\b(?:cell|mobile|office|home|work|fax|tel|phone)\b\s*:?", re.IGNORECASE)
_PHONE_DISALLOWED = re.compile(r"[^\d\s\-()+.]")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class ParsedAddress:
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


def clean_text(value: Any, null_strings: frozenset[str] = _NULL_STRINGS) -> str | None:
    """Strip a scalar to text; empty and null-like strings become None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    if text.lower() in null_strings:
        return None
    return text


def clean_identity(value: Any) -> str | None:
    return clean_text(value, _NULL_IDENTITY_STRINGS)


def split_full_name(name: str) -> tuple[str | None, str | None]:
    """One token is a first name; with more, the last token is the last name."""
    tokens = name.split()
    if not tokens:
        return None, None
    if len(tokens) == 1:
        return tokens[0], None
    return " ".join(tokens[:-1]), tokens[-1]


def parse_address(address: str) -> ParsedAddress:
    """Comma-split `street, city, STATE ZIP` into parts."""
    parts = [part.strip() for part in address.split(",") if part.strip()]
    if not parts:
        return ParsedAddress()
    street = parts[0]
    city = state = zip_code = None
    if len(parts) == 2:
        match = _CITY_STATE_ZIP.match(parts[1])
        if match:
            city, state, zip_code = match.group(1).strip() or None, match.group(2), match.group(3)
        else:
            city = parts[1]
    elif len(parts) >= 3:
        city = parts[1]
        match = _STATE_ZIP.search(parts[-1])
        if match:
            state, zip_code = match.group(1), match.group(2)
        else:
            state = parts[-1]
    return ParsedAddress(street=street, city=city, state=state, zip=zip_code)


def extract_unit(street: str | None) -> str | None:
    if not street:
        return None
    match = _UNIT.search(street)
    return match.group(0).strip() if match else None


def parse_percentage(value: Any) -> float | None:
    """Convert "3/8", "25.5%", or a plain number to a 0-100 percentage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        percent = _PERCENT.search(text)
        fraction = _FRACTION.search(text)
        if percent:
            number = float(percent.group(1))
        elif fraction:
            denominator = float(fraction.group(2))
            if denominator == 0:
                return None
            number = float(fraction.group(1)) / denominator * 100
        elif _PLAIN_NUMBER.fullmatch(text):
            number = float(text)
        else:
            return None
    if not 0 <= number <= 100:
        return None
    return round(number, 6)


def normalize_ownership_type(value: Any) -> str | None:
    text = clean_text(value)
    if text is None:
        return None
    return OWNERSHIP_TYPES.get(" ".join(text.upper().split()))


def clean_phone(value: Any) -> str | None:
    """Drop type labels and stray characters; None when fewer than 7 digits remain."""
    text = clean_text(value)
    if text is None:
        return None
    text = _PHONE_LABEL.sub(" ", text)
    text = _PHONE_DISALLOWED.sub("", text)
    text = " ".join(text.split())[:MAX_PHONE_LENGTH].strip()
    if sum(ch.isdigit() for ch in text) < MIN_PHONE_DIGITS:
        return None
    return text


def validate_email(value: Any) -> str | None:
    """Return the normalized address, or None when it is not a plausible email."""
    text = clean_text(value)
    if text is None:
        return None
    email = text.lower().strip("\"'<>[](){} ")
    if not MIN_EMAIL_LENGTH <= len(email) <= MAX_EMAIL_LENGTH:
        return None
    if not _EMAIL.match(email):
        return None
    if ".." in email or "@." in email or ".@" in email:
        return None
    if email.startswith(".") or email.endswith("."):
        return None
    return email


def is_legal_entity(*fields: str | None) -> bool:
    """Whole-word match of legal-profession markers across the given fields."""
    haystack = " ".join(f for f in fields if f)
    return bool(haystack) and _LEGAL_PATTERN.search(haystack) is not None


def _truncate(value: str | None, limit: int = MAX_NAME_LENGTH) -> str | None:
    return value[:limit] if value else value


def _unique(values: Iterable[str | None], limit: int) -> tuple[str, ...]:
    result: list[str] = []
    for value in values:
        if value and value not in result:
            result.append(value)
        if len(result) == limit:
            break
    return tuple(result)


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class ContactNormalizer:
    """Builds canonical contacts from raw extraction output."""

    def normalize(
        self,
        raw: dict[str, Any],
        *,
        source_file: str | None = None,
        job_id: str | None = None,
        project_origin: str | None = None,
        extraction_method: str | None = None,
    ) -> CanonicalContact:
        """Map one raw record.

        Raises:
            ContactValidationError: if the record has neither a name nor a company.
        """
        name = clean_identity(raw.get("name"))
        company = _truncate(clean_identity(raw.get("company")))
        first_name = clean_identity(raw.get("first_name"))
        last_name = clean_identity(raw.get("last_name"))

        if name is None and (first_name or last_name):
            name = " ".join(part for part in (first_name, last_name) if part)
        elif name is not None and first_name is None and last_name is None:
            first_name, last_name = split_full_name(name)
        name = _truncate(name)

        if not name and not company:
            raise ContactValidationError("Contact has neither a name nor a company")

        raw_address = clean_text(raw.get("address"))
        explicit = ParsedAddress(
            city=clean_text(raw.get("city")),
            state=clean_text(raw.get("state")),
            zip=clean_text(raw.get("zip") or raw.get("zip_code")),
        )
        if explicit.city or explicit.state or explicit.zip:
            address, city, state, zip_code = raw_address, explicit.city, explicit.state, explicit.zip
        elif raw_address:
            parsed = parse_address(raw_address)
            address, city, state, zip_code = parsed.street, parsed.city, parsed.state, parsed.zip
        else:
            address = city = state = zip_code = None
        unit = clean_text(raw.get("unit")) or extract_unit(address)

        phones = _unique(
            (clean_phone(p) for p in [raw.get("phone"), raw.get("fax"), *_as_list(raw.get("phones"))]),
            MAX_PHONES,
        )
        emails = _unique(
            (validate_email(e) for e in [raw.get("email"), *_as_list(raw.get("emails"))]),
            MAX_EMAILS,
        )

        ownership_info = clean_text(raw.get("ownership_info"))
        percentage = parse_percentage(raw.get("mineral_rights_percentage"))
        if percentage is None and raw.get("mineral_rights_percentage") is None:
            percentage = parse_percentage(ownership_info)
        ownership_type = normalize_ownership_type(
            raw.get("ownership_type") or raw.get("interest_type")
        )
        notes = clean_text(raw.get("notes"))

        return CanonicalContact(
            name=name,
            company=company,
            first_name=_truncate(first_name),
            last_name=_truncate(last_name),
            address=address,
            city=city,
            state=state,
            zip=zip_code,
            unit=unit,
            phones=phones,
            emails=emails,
            ownership_info=ownership_info,
            mineral_rights_percentage=percentage,
            ownership_type=ownership_type,
            record_type=clean_text(raw.get("record_type")),
            document_section=clean_text(raw.get("document_section")),
            notes=notes,
            source_file=source_file,
            job_id=job_id,
            project_origin=project_origin,
            extraction_method=extraction_method,
            is_legal_entity=is_legal_entity(name, company, notes),
        )

    def normalize_many(
        self,
        raws: Iterable[dict[str, Any]],
        **provenance: str | None,
    ) -> list[CanonicalContact]:
        """Normalize a batch, skipping records without a name or company."""
        contacts: list[CanonicalContact] = []
        skipped = 0
        for raw in raws:
            try:
                contacts.append(self.normalize(raw, **provenance))
            except ContactValidationError:
                skipped += 1
        if skipped:
            Log.warning(f"Skipped {skipped} extracted records without a name or company")
        return contacts
