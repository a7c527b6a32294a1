"""
LegacySchema: field alias table for the pre-multi-form "elementor" webhook.

The upstream form builder names the same field in several ways (language,
casing, auto-generated ids). Each label lists every alias it accepts; a new
variant is a data change in legacy_fields.json (or the file pointed to by
LEGACY_FIELDS_FILE), never a code change.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from elementor_relay.models.form_models import Form, FormField, Recipient

logger = logging.getLogger(__name__)

_DEFAULT_PATH = Path(__file__).resolve().parent.parent / "data" / "legacy_fields.json"

LEGACY_FORM_IDS = frozenset({"elementor"})


def is_legacy_form_id(form_id: str) -> bool:
    return form_id in LEGACY_FORM_IDS


class LegacySchema:

    def __init__(self, path: Optional[Path] = None):
        self._path = path
        self._data: dict | None = None

    def _load(self) -> dict:
        if self._data is None:
            if self._path:
                logger.info("Loading legacy field aliases from %s", self._path)
                raw = Path(self._path).read_text(encoding="utf-8")
            else:
                raw = _DEFAULT_PATH.read_text(encoding="utf-8")
            self._data = json.loads(raw)
        return self._data

    def fields(self) -> list[FormField]:
        """One FormField per alias, labels kept in table order."""
        out = []
        seen = set()
        for entry in self._load().get("fields", []):
            for alias in entry.get("aliases", []):
                if alias in seen:
                    continue
                seen.add(alias)
                out.append(FormField(field_id=alias, field_label=entry["label"], field_order=len(out)))
        return out

    def form(self, form_id: str = "elementor", recipients: Optional[list[Recipient]] = None,
             fields: Optional[list[FormField]] = None) -> Form:
        meta = self._load().get("form", {})
        return Form(
            id=form_id,
            name=meta.get("name", form_id),
            description=meta.get("description"),
            fields=fields or self.fields(),
            recipients=recipients or [],
        )
