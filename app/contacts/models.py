from dataclasses import dataclass
from datetime import datetime

MAX_PHONES = 8
MAX_EMAILS = 2


@dataclass(frozen=True)
class CanonicalContact:
    """A contact in the single schema shared by every extraction path.

    `id` and `created_at` are set once the contact has been stored.
    """

    name: str | None = None
    company: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    unit: str | None = None
    phones: tuple[str, ...] = ()
    emails: tuple[str, ...] = ()
    ownership_info: str | None = None
    mineral_rights_percentage: float | None = None
    ownership_type: str | None = None
    record_type: str | None = None
    document_section: str | None = None
    notes: str | None = None
    source_file: str | None = None
    job_id: str | None = None
    project_origin: str | None = None
    extraction_method: str | None = None
    is_legal_entity: bool = False
    acknowledged: bool = False
    id: int | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.name and not self.company:
            raise ValueError("A contact needs a name or a company")
        if len(self.phones) > MAX_PHONES:
            raise ValueError(f"A contact holds at most {MAX_PHONES} phones")
        if len(self.emails) > MAX_EMAILS:
            raise ValueError(f"A contact holds at most {MAX_EMAILS} emails")

    @property
    def display_name(self) -> str:
        return self.name or self.company or ""
