"""
FormService: form configuration CRUD against the store, plus resolve() for
the webhook path (store lookup with the legacy "elementor" fallback).
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from elementor_relay.errors import StoreError
from elementor_relay.models.form_models import Form, FormField, FormSummary, Recipient, digits_only
from elementor_relay.services.d1_client import D1Client, Statement
from elementor_relay.services.legacy_schema import LegacySchema, is_legacy_form_id

logger = logging.getLogger(__name__)

# Recipients linked to a contact are sent to the contact's current phone,
# the stored copy is only used for unlinked (or orphaned) rows.
_RECIPIENTS_SQL = """
    SELECT COALESCE(c.phone_number, fn.phone_number) AS phone_number,
           COALESCE(fn.label, c.name) AS label,
           fn.contact_id AS contact_id
    FROM form_numbers fn
    LEFT JOIN contacts c ON c.id = fn.contact_id
    WHERE fn.form_id = ?
    ORDER BY fn.id
"""


class FormService:

    def __init__(self, store: D1Client, legacy_schema: Optional[LegacySchema] = None):
        self.store = store
        self.legacy = legacy_schema or LegacySchema()

    # =================================================================
    #  WEBHOOK PATH
    # =================================================================

    def resolve(self, form_id: str) -> Optional[Form]:
        """
        Form configuration for a webhook call, or None when it does not exist.

        Reserved ids always resolve: their field schema comes from the alias
        table unless the store has fields configured, and their recipients
        come from the store (empty when absent or when the store is down).
        """
        legacy = is_legacy_form_id(form_id)
        try:
            form = self.get_form(form_id)
            if not legacy:
                return form
            if form is None:
                logger.info("Form '%s' not stored, using legacy schema without recipients", form_id)
                return self.legacy.form(form_id)
            return self.legacy.form(form_id, recipients=form.recipients, fields=form.fields or None)
        except (StoreError, ValidationError) as e:
            if legacy:
                logger.warning("Stored config unusable, using legacy schema for '%s': %s", form_id, e)
                return self.legacy.form(form_id)
            logger.error("Could not resolve form '%s': %s", form_id, e)
            return None

    # =================================================================
    #  READS
    # =================================================================

    def list_forms(self) -> list[FormSummary]:
        rows = self.store.rows("""
            SELECT f.id, f.name, f.description, f.created_at,
                   COUNT(DISTINCT ff.id) AS field_count,
                   COUNT(DISTINCT fn.id) AS number_count
            FROM forms f
            LEFT JOIN form_fields ff ON f.id = ff.form_id
            LEFT JOIN form_numbers fn ON f.id = fn.form_id
            GROUP BY f.id
            ORDER BY f.created_at DESC
        """)
        return [FormSummary(**row) for row in rows]

    def get_form(self, form_id: str) -> Optional[Form]:
        row = self.store.first("SELECT * FROM forms WHERE id = ? LIMIT 1", [form_id])
        if not row:
            return None

        fields = self.store.rows(
            "SELECT field_id, field_label, field_order FROM form_fields WHERE form_id = ? ORDER BY field_order",
            [form_id],
        )
        recipients = self.store.rows(_RECIPIENTS_SQL, [form_id])

        # Stored rows are trusted: write-time rules (slug, phone length) are not
        # re-applied here, an invalid phone fails on its own at dispatch time
        return Form.model_construct(
            id=row["id"],
            name=row.get("name") or "",
            description=row.get("description"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            fields=[
                FormField.model_construct(
                    field_id=str(f["field_id"]),
                    field_label=str(f.get("field_label") or f["field_id"]),
                    field_order=int(f.get("field_order") or 0),
                )
                for f in fields
            ],
            recipients=[
                Recipient.model_construct(
                    phone_number=digits_only(r.get("phone_number")),
                    label=r.get("label"),
                    contact_id=r.get("contact_id"),
                )
                for r in recipients
            ],
        )

    def export_form(self, form_id: str, worker_url: str) -> Optional[dict]:
        """Portable configuration dump, same shape the admin CLI prints."""
        form = self.get_form(form_id)
        if not form:
            return None
        return {
            "form": {"id": form.id, "name": form.name, "description": form.description},
            "fields": [{"field_id": f.field_id, "field_label": f.field_label} for f in form.ordered_fields()],
            "numbers": [{"phone_number": r.phone_number, "label": r.label} for r in form.recipients],
            "webhook_url": f"{worker_url.rstrip('/')}/webhook/{form.id}",
        }

    # =================================================================
    #  WRITES (one batch each, applied atomically by the store)
    # =================================================================

    @staticmethod
    def _children(form_id: str, fields: list[FormField], recipients: list[Recipient]) -> list[Statement]:
        statements: list[Statement] = []
        for i, f in enumerate(fields):
            statements.append((
                "INSERT INTO form_fields (form_id, field_id, field_label, field_order) VALUES (?, ?, ?, ?)",
                [form_id, f.field_id, f.field_label, i],
            ))
        for r in recipients:
            statements.append((
                "INSERT INTO form_numbers (form_id, phone_number, label, contact_id) VALUES (?, ?, ?, ?)",
                [form_id, r.phone_number, r.label, r.contact_id],
            ))
        return statements

    def create_form(self, form: Form) -> Form:
        statements: list[Statement] = [(
            "INSERT INTO forms (id, name, description) VALUES (?, ?, ?)",
            [form.id, form.name, form.description],
        )]
        statements += self._children(form.id, form.fields, form.recipients)
        self.store.batch(statements)
        logger.info("Form '%s' created (%s fields, %s numbers)", form.id, len(form.fields), len(form.recipients))
        return form

    def update_form(self, form_id: str, name: Optional[str] = None, description: Optional[str] = None,
                    fields: Optional[list[FormField]] = None,
                    recipients: Optional[list[Recipient]] = None) -> None:
        """Replace details, fields and/or recipients in a single transaction."""
        statements: list[Statement] = [(
            "UPDATE forms SET name = COALESCE(?, name), description = COALESCE(?, description), "
            "updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            [name, description, form_id],
        )]
        if fields is not None:
            statements.append(("DELETE FROM form_fields WHERE form_id = ?", [form_id]))
            statements += self._children(form_id, fields, [])
        if recipients is not None:
            statements.append(("DELETE FROM form_numbers WHERE form_id = ?", [form_id]))
            statements += self._children(form_id, [], recipients)

        self.store.batch(statements)
        logger.info("Form '%s' updated", form_id)

    def delete_form(self, form_id: str) -> None:
        self.store.batch([
            ("DELETE FROM form_fields WHERE form_id = ?", [form_id]),
            ("DELETE FROM form_numbers WHERE form_id = ?", [form_id]),
            ("DELETE FROM forms WHERE id = ?", [form_id]),
        ])
        logger.info("Form '%s' deleted", form_id)


def dump_form(form: Form) -> str:
    return json.dumps(form.model_dump(), ensure_ascii=False, indent=2)
