from datetime import datetime
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from elementor_relay.models.form_models import FormField

HEADER = "*Nova submissão de formulário*"
TIMEZONE = ZoneInfo("America/Sao_Paulo")


def format_timestamp(now: Optional[datetime] = None) -> str:
    """pt-BR style: 18/10/2026, 14:03:22 (São Paulo time)."""
    now = now or datetime.now(TIMEZONE)
    if now.tzinfo is not None:
        now = now.astimezone(TIMEZONE)
    return now.strftime("%d/%m/%Y, %H:%M:%S")


def format_message(extracted: dict[str, str], fields: Iterable[FormField],
                   now: Optional[datetime] = None) -> str:
    """
    WhatsApp text for a submission. Lines follow the form's field order;
    fields without a value are skipped and each label appears at most once
    (the first populated field id wins).
    """
    lines = [HEADER, f"Data/Hora: {format_timestamp(now)}", ""]

    emitted = set()
    for field in sorted(fields, key=lambda f: f.field_order):
        value = extracted.get(field.field_id)
        if not value or field.field_label in emitted:
            continue
        emitted.add(field.field_label)
        lines.append(f"*{field.field_label}:* {value}")

    return "\n".join(lines)
