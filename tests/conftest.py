"""
Shared fixtures: settings built by hand, provider/store doubles and a
TestClient whose services are swapped through dependency overrides.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from elementor_relay.config import (
    AlertSettings,
    MonitoringSettings,
    Settings,
    StoreSettings,
    ZAPISettings,
)
from elementor_relay.models.form_models import Form, FormField, Recipient
from elementor_relay.services.d1_client import D1Client
from elementor_relay.services.dispatch_service import DispatchService
from elementor_relay.services.form_service import FormService
from elementor_relay.services.webhook_service import WebhookService
from tests.stubs import StubZAPI


@pytest.fixture
def zapi_settings():
    return ZAPISettings(instance_id="inst", instance_token="tok", client_token="client")


@pytest.fixture
def settings(zapi_settings):
    return Settings(
        zapi=zapi_settings,
        store=StoreSettings(account_id="acc", api_token="cf-token", database_id="db"),
        alerts=AlertSettings(email_to="ops@example.com", resend_api_key="re_key", whatsapp_number="5511988887777"),
        monitoring=MonitoringSettings(enabled=True, interval_seconds=60),
        worker_url="https://relay.example.com",
        legacy_fields_file=None,
    )


@pytest.fixture
def contact_form():
    return Form(
        id="contato",
        name="Contato",
        fields=[
            FormField(field_id="nome", field_label="Nome", field_order=0),
            FormField(field_id="email", field_label="E-mail", field_order=1),
            FormField(field_id="mensagem", field_label="Mensagem", field_order=2),
        ],
        recipients=[
            Recipient(phone_number="5511911111111", label="Vendas"),
            Recipient(phone_number="5511922222222", label="Suporte"),
        ],
    )


@pytest.fixture
def stub_zapi():
    return StubZAPI()


@pytest.fixture
def store():
    return MagicMock(spec=D1Client)


@pytest.fixture
def make_client(zapi_settings):
    """Build a TestClient around a WebhookService made of the given doubles."""
    from main import app
    from elementor_relay.dependencies import get_webhook_service

    def _make(form_service, zapi, zapi_settings_override=None):
        service = WebhookService(
            zapi_settings=zapi_settings_override or zapi_settings,
            form_service=form_service,
            dispatch_service=DispatchService(zapi, max_workers=4),
        )
        app.dependency_overrides[get_webhook_service] = lambda: service
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def real_form_service(store):
    return FormService(store)
