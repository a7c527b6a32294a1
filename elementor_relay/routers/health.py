import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from elementor_relay.config import Settings, get_settings
from elementor_relay.dependencies import get_store, get_zapi
from elementor_relay.errors import ProviderError, StoreError
from elementor_relay.services.d1_client import D1Client
from elementor_relay.services.zapi_service import ZAPIService

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "Elementor WhatsApp Webhook"
SERVICE_VERSION = "3.0.0"


@router.get("/")
def read_root():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": {
            "webhook": "/webhook/{formId}",
            "health": "/health",
        },
    }


def _run_checks(settings: Settings, store: D1Client, zapi: ZAPIService) -> tuple[bool, dict]:
    checks = {}
    zapi_details = None

    missing = settings.missing_keys()
    checks["configuration"] = {"ok": not missing, "missing": missing}

    if settings.store.missing_keys():
        checks["database"] = {"ok": False, "error": "not configured"}
    else:
        try:
            store.ping()
            checks["database"] = {"ok": True}
        except StoreError as e:
            logger.warning("Health: database check failed: %s", e)
            checks["database"] = {"ok": False, "error": str(e)}

    if settings.zapi.missing_keys():
        checks["provider"] = {"ok": False, "error": "not configured"}
    else:
        try:
            zapi_details = zapi.get_status()
            checks["provider"] = {"ok": bool(zapi_details.get("connected"))}
        except ProviderError as e:
            logger.warning("Health: provider check failed: %s", e)
            zapi_details = e.payload
            checks["provider"] = {"ok": False, "error": str(e)}

    healthy = all(c["ok"] for c in checks.values())
    return healthy, {
        "status": "healthy" if healthy else "unhealthy",
        "checks": checks,
        "zapiDetails": zapi_details,
    }


@router.get("/health")
async def health(
    settings: Settings = Depends(get_settings),
    store: D1Client = Depends(get_store),
    zapi: ZAPIService = Depends(get_zapi),
):
    healthy, body = await run_in_threadpool(_run_checks, settings, store, zapi)
    return JSONResponse(status_code=200 if healthy else 503, content=body)
