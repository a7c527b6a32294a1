from unittest.mock import MagicMock

import requests

from elementor_relay.config import AlertSettings
from elementor_relay.services.alert_service import AlertService
from tests.stubs import StubZAPI


def _session(status=200):
    session = MagicMock(spec=requests.Session)
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.text = "{}"
    session.post.return_value = response
    return session


def test_email_is_the_primary_channel(settings):
    session = _session()
    zapi = StubZAPI()
    alerts = AlertService(settings.alerts, zapi=zapi, session=session)

    assert alerts.notify("WhatsApp desconectado", "detalhes") == "email"

    payload = session.post.call_args.kwargs["json"]
    assert payload["to"] == ["ops@example.com"]
    assert payload["subject"] == "WhatsApp desconectado"
    assert payload["text"] == "detalhes"
    assert "html" in payload and "from" in payload
    assert zapi.sent == []


def test_whatsapp_backup_when_email_fails(settings):
    zapi = StubZAPI()
    alerts = AlertService(settings.alerts, zapi=zapi, session=_session(500))

    assert alerts.notify("WhatsApp reconectado", "ok") == "whatsapp"
    assert zapi.sent[0]["phone"] == "5511988887777"
    assert "WhatsApp reconectado" in zapi.sent[0]["message"]


def test_nothing_configured_returns_none():
    session = _session()
    alerts = AlertService(AlertSettings(email_to="", resend_api_key="", whatsapp_number=""), session=session)

    assert alerts.notify("x", "y") is None
    session.post.assert_not_called()
