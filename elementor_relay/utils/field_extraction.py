"""
Field extraction for Elementor submissions.

Three payload shapes carry the same values:
    nested          {"fields": {"nome": {"value": "Ana"}}}
    flat            {"nome": "Ana"}
    URL-encoded     {"fields[nome][value]": "Ana"}
Only field ids present in the form schema survive.
"""

import logging
import re
from typing import Any, Iterable

from elementor_relay.models.form_models import FormField

logger = logging.getLogger(__name__)

_FLATTENED_KEY_RE = re.compile(r"^fields\[(?P<id>.+?)\]\[value\]$")


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None and str(v) != "")
    elif isinstance(value, dict):
        return None
    text = str(value).strip()
    return text or None


def _from_nested(fields_obj: dict, known: set[str]) -> dict[str, str]:
    out = {}
    for field_id, entry in fields_obj.items():
        if field_id not in known or not isinstance(entry, dict) or "value" not in entry:
            continue
        text = _as_text(entry["value"])
        if text is not None:
            out[field_id] = text
    return out


def _from_flat(data: dict, known: set[str]) -> dict[str, str]:
    out = {}
    for key, value in data.items():
        if key in known:
            text = _as_text(value)
            if text is not None:
                out[key] = text
    return out


def _from_flattened(data: dict, known: set[str]) -> dict[str, str]:
    out = {}
    for key, value in data.items():
        match = _FLATTENED_KEY_RE.match(str(key))
        if match and match.group("id") in known:
            text = _as_text(value)
            if text is not None:
                out[match.group("id")] = text
    return out


def extract_fields(data: Any, fields: Iterable[FormField]) -> dict[str, str]:
    """
    {field_id: value} for the form's known fields.
    Priority: nested `fields` object, then flat top-level keys, then
    `fields[id][value]` keys. Never raises.
    """
    if not isinstance(data, dict):
        return {}

    known = {f.field_id for f in fields}

    fields_obj = data.get("fields")
    if isinstance(fields_obj, dict):
        extracted = _from_nested(fields_obj, known)
        logger.info("Nested fields shape: %s field(s) recognized", len(extracted))
        return extracted

    extracted = _from_flat(data, known)
    if extracted:
        logger.info("Flat shape: %s field(s) recognized", len(extracted))
        return extracted

    extracted = _from_flattened(data, known)
    logger.info("URL-encoded shape: %s field(s) recognized", len(extracted))
    return extracted
