"""
Configuration models: forms, fields, recipients and contacts.

Validators guard what gets written. Rows read back from the store are built
with model_construct (see FormService), so data written by older tools is
delivered as-is instead of being rejected at webhook time.
"""

import re
import secrets
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MIN_PHONE_DIGITS = 10

_FORM_ID_RE = re.compile(r"^[a-z0-9_-]+$")
_FORM_ID_INVALID = re.compile(r"[^a-z0-9_-]")


def digits_only(value: Any) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())


def normalize_phone(value: Any) -> str:
    """Strip everything but digits; reject numbers shorter than 10 digits."""
    digits = digits_only(value)
    if len(digits) < MIN_PHONE_DIGITS:
        raise ValueError("phone number must have at least 10 digits")
    return digits


def normalize_form_id(value: Optional[str]) -> str:
    """Lowercase, invalid characters become '-'; blank generates a random id."""
    value = (value or "").strip().lower()
    if not value:
        return secrets.token_hex(5)
    return _FORM_ID_INVALID.sub("-", value)


class FormField(BaseModel):
    """Maps an Elementor field id to the label shown in the WhatsApp message."""

    field_id: str = Field(min_length=1)
    field_label: str = Field(min_length=1)
    field_order: int = 0

    @field_validator("field_id", "field_label")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class Recipient(BaseModel):
    phone_number: str
    label: Optional[str] = None
    contact_id: Optional[int] = None

    @field_validator("phone_number", mode="before")
    @classmethod
    def _digits(cls, value: Any) -> str:
        return normalize_phone(value)


class Contact(BaseModel):
    id: Optional[int] = None
    name: str = Field(min_length=1)
    phone_number: str
    role: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    form_count: int = 0

    @field_validator("phone_number", mode="before")
    @classmethod
    def _digits(cls, value: Any) -> str:
        return normalize_phone(value)

    def as_recipient(self) -> Recipient:
        """Recipient row for this contact (phone copied at assignment time)."""
        return Recipient(phone_number=self.phone_number, label=self.name, contact_id=self.id)


class Form(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    fields: list[FormField] = Field(default_factory=list)
    recipients: list[Recipient] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("id")
    @classmethod
    def _slug(cls, value: str) -> str:
        value = value.strip()
        if not _FORM_ID_RE.match(value):
            raise ValueError("form id must be lowercase letters, digits, '-' or '_'")
        return value

    @model_validator(mode="after")
    def _unique_field_ids(self) -> "Form":
        seen = set()
        for f in self.fields:
            if f.field_id in seen:
                raise ValueError(f"duplicate field_id '{f.field_id}'")
            seen.add(f.field_id)
        return self

    @property
    def phone_numbers(self) -> list[str]:
        return [r.phone_number for r in self.recipients]

    def ordered_fields(self) -> list[FormField]:
        return sorted(self.fields, key=lambda f: f.field_order)


class FormSummary(BaseModel):
    """A row of the forms listing, with counts instead of children."""

    id: str
    name: str
    description: Optional[str] = None
    field_count: int = 0
    number_count: int = 0
    created_at: Optional[str] = None


class DispatchResult(BaseModel):
    """Outcome of sending the message to one number."""

    number: str
    success: bool
    data: Any = None
    error: Any = None


class MonitoringState(BaseModel):
    key: str
    connected: bool
    session: bool = False
    status_json: str = "{}"
    last_changed: Optional[str] = None
