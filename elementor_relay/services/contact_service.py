"""
ContactService: CRUD for the contacts table.
Contacts are the address book recipients are picked from.
"""

import logging
from typing import Optional

from elementor_relay.models.form_models import Contact, FormSummary
from elementor_relay.services.d1_client import D1Client

logger = logging.getLogger(__name__)


class ContactService:

    def __init__(self, store: D1Client):
        self.store = store

    def list_contacts(self) -> list[Contact]:
        rows = self.store.rows("""
            SELECT c.*, COUNT(DISTINCT fn.form_id) AS form_count
            FROM contacts c
            LEFT JOIN form_numbers fn ON fn.contact_id = c.id
            GROUP BY c.id
            ORDER BY c.name ASC
        """)
        return [Contact(**row) for row in rows]

    def get_contact(self, contact_id: int) -> Optional[Contact]:
        row = self.store.first("SELECT * FROM contacts WHERE id = ? LIMIT 1", [contact_id])
        return Contact(**row) if row else None

    def get_contact_by_phone(self, phone_number: str) -> Optional[Contact]:
        row = self.store.first("SELECT * FROM contacts WHERE phone_number = ? LIMIT 1", [phone_number])
        return Contact(**row) if row else None

    def create_contact(self, contact: Contact) -> int:
        """Insert and return the new row id."""
        result = self.store.query(
            "INSERT INTO contacts (phone_number, name, company, role, notes) VALUES (?, ?, ?, ?, ?)",
            [contact.phone_number, contact.name, contact.company, contact.role, contact.notes],
        )
        contact_id = (result.get("meta") or {}).get("last_row_id")
        logger.info("Contact '%s' created with id %s", contact.name, contact_id)
        return contact_id

    def update_contact(self, contact_id: int, contact: Contact) -> None:
        """
        Update the contact and the phone copies held by its recipients.
        Both writes go in one batch so recipients never point at a stale phone.
        """
        self.store.batch([
            (
                "UPDATE contacts SET phone_number = ?, name = ?, company = ?, role = ?, notes = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                [contact.phone_number, contact.name, contact.company, contact.role, contact.notes, contact_id],
            ),
            (
                "UPDATE form_numbers SET phone_number = ? WHERE contact_id = ?",
                [contact.phone_number, contact_id],
            ),
        ])
        logger.info("Contact %s updated", contact_id)

    def delete_contact(self, contact_id: int) -> None:
        """Detach from every form (the stored phone stays) and delete."""
        self.store.batch([
            ("UPDATE form_numbers SET contact_id = NULL WHERE contact_id = ?", [contact_id]),
            ("DELETE FROM contacts WHERE id = ?", [contact_id]),
        ])
        logger.info("Contact %s deleted", contact_id)

    def get_contact_form_count(self, contact_id: int) -> int:
        row = self.store.first(
            "SELECT COUNT(DISTINCT form_id) AS count FROM form_numbers WHERE contact_id = ?",
            [contact_id],
        )
        return int((row or {}).get("count") or 0)

    def get_forms_using_contact(self, contact_id: int) -> list[FormSummary]:
        rows = self.store.rows("""
            SELECT DISTINCT f.id, f.name
            FROM forms f
            JOIN form_numbers fn ON f.id = fn.form_id
            WHERE fn.contact_id = ?
        """, [contact_id])
        return [FormSummary(**row) for row in rows]
