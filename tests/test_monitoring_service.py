from unittest.mock import MagicMock

import pytest

from elementor_relay.config import MonitoringSettings
from elementor_relay.errors import ProviderError
from elementor_relay.services.alert_service import AlertService
from elementor_relay.services.monitoring_service import MonitoringService
from tests.stubs import StubZAPI

CONNECTED_ROW = {"key": "zapi", "connected": 1, "session": 1, "status_json": "{}",
                 "last_changed": "2026-10-18T10:00:00+00:00"}


@pytest.fixture
def alerts():
    alerts = MagicMock(spec=AlertService)
    alerts.notify.return_value = "email"
    return alerts


def _service(store, alerts, status, enabled=True):
    return MonitoringService(MonitoringSettings(enabled=enabled), store, StubZAPI(status=status), alerts)


def test_first_poll_bootstraps_without_alert(store, alerts):
    store.first.return_value = None

    outcome = _service(store, alerts, {"connected": True, "session": True}).check()

    assert outcome["status"] == "bootstrapped"
    store.batch.assert_called_once()
    sqls = [sql for sql, _ in store.batch.call_args.args[0]]
    assert sqls[0].startswith("INSERT INTO monitoring_state")
    assert sqls[1].startswith("INSERT INTO monitoring_history")
    alerts.notify.assert_not_called()


def test_disconnect_transition_writes_and_alerts_once(store, alerts):
    store.first.return_value = CONNECTED_ROW

    outcome = _service(store, alerts, {"connected": False, "session": False, "error": "You are not connected"}).check()

    assert outcome == {"status": "changed", "connected": False, "alert": "email"}
    store.batch.assert_called_once()
    statements = store.batch.call_args.args[0]
    assert statements[0][1][:3] == ["zapi", 0, 0]
    trim_sql, trim_params = statements[2]
    assert trim_sql.startswith("DELETE FROM monitoring_history")
    assert trim_params == ["zapi", "zapi", 100]
    alerts.notify.assert_called_once()
    subject, text = alerts.notify.call_args.args
    assert subject == "WhatsApp desconectado"
    assert "You are not connected" in text


def test_unchanged_status_writes_nothing(store, alerts):
    store.first.return_value = CONNECTED_ROW

    outcome = _service(store, alerts, {"connected": True, "session": True}).check()

    assert outcome["status"] == "unchanged"
    store.batch.assert_not_called()
    store.query.assert_not_called()
    alerts.notify.assert_not_called()


def test_failed_poll_counts_as_disconnected(store, alerts):
    store.first.return_value = CONNECTED_ROW

    outcome = _service(store, alerts, ProviderError("HTTP 502")).check()

    assert outcome["connected"] is False
    alerts.notify.assert_called_once()


def test_disabled_monitoring_does_nothing(store, alerts):
    outcome = _service(store, alerts, {"connected": True}, enabled=False).check()

    assert outcome == {"status": "disabled"}
    store.first.assert_not_called()
    store.batch.assert_not_called()
