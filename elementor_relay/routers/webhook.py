"""
Webhook Router: thin HTTP layer
===============================
Receives Elementor form submissions and delegates to WebhookService.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from elementor_relay.dependencies import get_webhook_service
from elementor_relay.services.webhook_service import WebhookService

router = APIRouter()


@router.post("/webhook/{form_id}")
async def receive_form_submission(
    form_id: str,
    request: Request,
    webhook_service: WebhookService = Depends(get_webhook_service),
):
    """
    Form submission webhook (JSON or URL-encoded body).
    200 all recipients reached, 207 partial, 400 no recognized fields,
    404 unknown form, 500 configuration/internal error.
    """
    raw_body = await request.body()
    result = await run_in_threadpool(webhook_service.process, form_id, raw_body)
    return JSONResponse(status_code=result.status_code, content=result.body)
