"""
Service wiring. Each provider builds its collaborators from explicit
settings structs and is cached, so the app shares one instance per process
and tests swap them through app.dependency_overrides.
"""

from functools import lru_cache

from elementor_relay.config import get_settings
from elementor_relay.services.alert_service import AlertService
from elementor_relay.services.contact_service import ContactService
from elementor_relay.services.d1_client import D1Client
from elementor_relay.services.dispatch_service import DispatchService
from elementor_relay.services.form_service import FormService
from elementor_relay.services.legacy_schema import LegacySchema
from elementor_relay.services.monitoring_service import MonitoringService
from elementor_relay.services.webhook_service import WebhookService
from elementor_relay.services.zapi_service import ZAPIService


@lru_cache(maxsize=1)
def get_store() -> D1Client:
    settings = get_settings()
    return D1Client(settings.store, timeout=settings.request_timeout)


@lru_cache(maxsize=1)
def get_zapi() -> ZAPIService:
    settings = get_settings()
    return ZAPIService(settings.zapi, timeout=settings.request_timeout)


@lru_cache(maxsize=1)
def get_form_service() -> FormService:
    return FormService(get_store(), LegacySchema(get_settings().legacy_fields_file))


@lru_cache(maxsize=1)
def get_contact_service() -> ContactService:
    return ContactService(get_store())


@lru_cache(maxsize=1)
def get_webhook_service() -> WebhookService:
    settings = get_settings()
    return WebhookService(
        zapi_settings=settings.zapi,
        form_service=get_form_service(),
        dispatch_service=DispatchService(get_zapi(), max_workers=settings.dispatch_max_workers),
    )


@lru_cache(maxsize=1)
def get_monitoring_service() -> MonitoringService:
    settings = get_settings()
    zapi = get_zapi()
    return MonitoringService(
        settings=settings.monitoring,
        store=get_store(),
        zapi=zapi,
        alerts=AlertService(settings.alerts, zapi=zapi, timeout=settings.request_timeout),
    )
