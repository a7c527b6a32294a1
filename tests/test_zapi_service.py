import json
from unittest.mock import MagicMock

import pytest
import requests

from elementor_relay.errors import ProviderError
from elementor_relay.services.zapi_service import ZAPIService


def _response(status=200, payload=None):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def zapi(zapi_settings, session):
    return ZAPIService(zapi_settings, timeout=5, session=session)


def test_send_text_posts_phone_and_message(zapi, session):
    session.post.return_value = _response(payload={"zaapId": "z1", "messageId": "m1"})

    data = zapi.send_text("5511911111111", "Olá, *Nome:* João")

    assert data == {"zaapId": "z1", "messageId": "m1"}
    url = session.post.call_args.args[0]
    kwargs = session.post.call_args.kwargs
    assert url == "https://api.z-api.io/instances/inst/token/tok/send-text"
    assert kwargs["headers"]["Client-Token"] == "client"
    assert kwargs["timeout"] == 5
    assert json.loads(kwargs["data"].decode("utf-8")) == {"phone": "5511911111111", "message": "Olá, *Nome:* João"}


def test_send_text_http_error_carries_payload(zapi, session):
    session.post.return_value = _response(400, {"error": "phone invalid"})

    with pytest.raises(ProviderError) as exc:
        zapi.send_text("5511911111111", "oi")

    assert exc.value.status_code == 400
    assert exc.value.payload == {"error": "phone invalid"}


def test_send_text_transport_error(zapi, session):
    session.post.side_effect = requests.Timeout("read timed out")
    with pytest.raises(ProviderError):
        zapi.send_text("5511911111111", "oi")


def test_get_status(zapi, session):
    session.get.return_value = _response(payload={"connected": True, "session": True, "smartphoneConnected": True})

    assert zapi.get_status()["connected"] is True
    assert session.get.call_args.args[0].endswith("/inst/token/tok/status")
