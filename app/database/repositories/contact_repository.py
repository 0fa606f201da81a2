from collections.abc import Sequence
from typing import Any

import psycopg
from psycopg.rows import dict_row

from app.contacts.models import CanonicalContact
from app.database.connection import get_connection
from app.database.exceptions import PersistenceError

_FIELDS = (
    "name",
    "company",
    "first_name",
    "last_name",
    "address",
    "city",
    "state",
    "zip",
    "unit",
    "phones",
    "emails",
    "ownership_info",
    "mineral_rights_percentage",
    "ownership_type",
    "record_type",
    "document_section",
    "notes",
    "source_file",
    "job_id",
    "project_origin",
    "extraction_method",
    "is_legal_entity",
    "acknowledged",
)


class ContactRepository:
    """Database operations for the contacts table."""

    def bulk_insert(self, contacts: Sequence[CanonicalContact]) -> int:
        """Insert contacts in one transaction and return how many were written.

        Raises:
            PersistenceError: if the insert fails; nothing is written.
        """
        if not contacts:
            return 0
        placeholders = ", ".join(["%s"] * len(_FIELDS))
        rows = [_contact_params(contact) for contact in contacts]
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.executemany(
                        f"INSERT INTO contacts ({', '.join(_FIELDS)}) VALUES ({placeholders})",
                        rows,
                    )
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to insert {len(rows)} contacts: {exc}") from exc
        return len(rows)

    def find_all_ordered(self) -> list[CanonicalContact]:
        """All stored contacts, oldest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT id, created_at, {', '.join(_FIELDS)} FROM contacts "
                    "ORDER BY created_at, id"
                )
                rows = cur.fetchall()
        return [_row_to_contact(row) for row in rows]

    def find_by_job_id(self, job_id: str) -> list[CanonicalContact]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT id, created_at, {', '.join(_FIELDS)} FROM contacts "
                    "WHERE job_id = %s ORDER BY created_at, id",
                    (job_id,),
                )
                rows = cur.fetchall()
        return [_row_to_contact(row) for row in rows]

    def delete_by_ids(self, ids: Sequence[int]) -> int:
        """Delete contacts by id and return the number of rows removed."""
        if not ids:
            return 0
        try:
            with get_connection() as conn:
                cursor = conn.execute("DELETE FROM contacts WHERE id = ANY(%s)", (list(ids),))
                deleted = cursor.rowcount
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to delete {len(ids)} contacts: {exc}") from exc
        return deleted


def _contact_params(contact: CanonicalContact) -> tuple[Any, ...]:
    values = []
    for name in _FIELDS:
        value = getattr(contact, name)
        values.append(list(value) if isinstance(value, tuple) else value)
    return tuple(values)


def _row_to_contact(row: dict[str, Any]) -> CanonicalContact:
    data = {name: row[name] for name in _FIELDS}
    data["phones"] = tuple(data["phones"] or ())
    data["emails"] = tuple(data["emails"] or ())
    return CanonicalContact(id=row["id"], created_at=row["created_at"], **data)
