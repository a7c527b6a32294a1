"""
MonitoringService: polls Z-API connectivity and records transitions.

State lives in the store (monitoring_state + monitoring_history). Only a
connected/disconnected transition writes and alerts; the very first poll
bootstraps the state silently and an unchanged poll touches nothing.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from elementor_relay.config import MonitoringSettings
from elementor_relay.errors import ProviderError
from elementor_relay.models.form_models import MonitoringState
from elementor_relay.services.alert_service import AlertService
from elementor_relay.services.d1_client import D1Client, Statement
from elementor_relay.services.zapi_service import ZAPIService

logger = logging.getLogger(__name__)


class MonitoringService:

    def __init__(self, settings: MonitoringSettings, store: D1Client, zapi: ZAPIService,
                 alerts: AlertService):
        self.settings = settings
        self.store = store
        self.zapi = zapi
        self.alerts = alerts

    @property
    def key(self) -> str:
        return self.settings.provider_key

    def poll_status(self) -> dict:
        """Provider status; a failed poll counts as disconnected."""
        try:
            return self.zapi.get_status()
        except ProviderError as e:
            return {"connected": False, "session": False, "error": str(e)}

    def get_state(self) -> Optional[MonitoringState]:
        row = self.store.first("SELECT * FROM monitoring_state WHERE key = ? LIMIT 1", [self.key])
        if not row:
            return None
        return MonitoringState(
            key=row["key"],
            connected=bool(row.get("connected")),
            session=bool(row.get("session")),
            status_json=row.get("status_json") or "{}",
            last_changed=row.get("last_changed"),
        )

    def get_history(self, limit: int = 20) -> list[dict]:
        return self.store.rows(
            "SELECT * FROM monitoring_history WHERE key = ? ORDER BY id DESC LIMIT ?",
            [self.key, limit],
        )

    def _write_statements(self, connected: bool, session: bool, status_json: str, now: str) -> list[Statement]:
        return [
            (
                "INSERT INTO monitoring_state (key, connected, session, status_json, last_changed) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET connected = excluded.connected, session = excluded.session, "
                "status_json = excluded.status_json, last_changed = excluded.last_changed",
                [self.key, int(connected), int(session), status_json, now],
            ),
            (
                "INSERT INTO monitoring_history (key, connected, session, status_json, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                [self.key, int(connected), int(session), status_json, now],
            ),
            (
                "DELETE FROM monitoring_history WHERE key = ? AND id NOT IN "
                "(SELECT id FROM monitoring_history WHERE key = ? ORDER BY id DESC LIMIT ?)",
                [self.key, self.key, self.settings.history_limit],
            ),
        ]

    def check(self) -> dict:
        """One monitoring evaluation. Returns what happened, for logs and the CLI."""
        if not self.settings.enabled:
            return {"status": "disabled"}

        status = self.poll_status()
        connected = bool(status.get("connected"))
        session = bool(status.get("session"))
        status_json = json.dumps(status, ensure_ascii=False, default=str)
        now = datetime.now(timezone.utc).isoformat()

        previous = self.get_state()

        if previous is None:
            self.store.batch(self._write_statements(connected, session, status_json, now))
            logger.info("Monitoring state bootstrapped for %s: connected=%s", self.key, connected)
            return {"status": "bootstrapped", "connected": connected, "alert": None}

        if previous.connected == connected:
            logger.debug("Monitoring %s unchanged: connected=%s", self.key, connected)
            return {"status": "unchanged", "connected": connected, "alert": None}

        self.store.batch(self._write_statements(connected, session, status_json, now))
        logger.warning("Provider %s changed: connected %s -> %s", self.key, previous.connected, connected)

        channel = self.alerts.notify(*self._alert_text(connected, status, previous))
        return {"status": "changed", "connected": connected, "alert": channel}

    def _alert_text(self, connected: bool, status: dict, previous: MonitoringState) -> tuple[str, str]:
        if connected:
            subject = "WhatsApp reconectado"
            body = "A instância Z-API voltou a ficar conectada."
        else:
            subject = "WhatsApp desconectado"
            body = "A instância Z-API está desconectada. Os formulários não serão entregues até a reconexão."
        detail = status.get("error") or ""
        lines = [
            body,
            "",
            f"Estado anterior desde: {previous.last_changed or '-'}",
            f"Sessão: {'ativa' if status.get('session') else 'inativa'}",
        ]
        if detail:
            lines.append(f"Erro: {detail}")
        return subject, "\n".join(lines)
