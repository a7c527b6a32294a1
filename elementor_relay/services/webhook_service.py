"""
WebhookService: submission pipeline for POST /webhook/{form_id}.
parse -> check credentials -> resolve form -> extract -> validate -> format -> dispatch.
Decoupled from HTTP: returns a status code and a JSON-serializable body.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from elementor_relay.config import ZAPISettings
from elementor_relay.services.dispatch_service import DispatchService, all_succeeded
from elementor_relay.services.form_service import FormService
from elementor_relay.utils.field_extraction import extract_fields
from elementor_relay.utils.helpers import format_duration, parse_request_body
from elementor_relay.utils.message_format import format_message

logger = logging.getLogger(__name__)


@dataclass
class WebhookResult:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


class WebhookService:
    """Orchestrates a single webhook invocation. Holds no per-request state."""

    def __init__(self, zapi_settings: ZAPISettings, form_service: FormService,
                 dispatch_service: DispatchService):
        self.zapi_settings = zapi_settings
        self.forms = form_service
        self.dispatcher = dispatch_service

    # =================================================================
    #  PUBLIC ENTRY POINT
    # =================================================================

    def process(self, form_id: str, raw_body: bytes | str) -> WebhookResult:
        started = time.monotonic()
        try:
            return self._process(form_id, raw_body, started)
        except Exception as e:
            logger.exception("Webhook '%s' failed: %s", form_id, e)
            return WebhookResult(500, {
                "success": False,
                "error": "Internal server error",
                "message": str(e),
                "form": form_id,
            })

    def _process(self, form_id: str, raw_body: bytes | str, started: float) -> WebhookResult:
        # --- STEP 1: PARSE (malformed bodies degrade to {}) ---
        data = parse_request_body(raw_body)
        logger.info("Webhook '%s' received, keys: %s", form_id, list(data.keys()))

        # --- STEP 2: PROVIDER CREDENTIALS ---
        missing = self.zapi_settings.missing_keys()
        if missing:
            logger.error("Webhook '%s' aborted, missing configuration: %s", form_id, missing)
            return WebhookResult(500, {
                "success": False,
                "error": "Configuration error",
                "message": "WhatsApp provider credentials are not configured",
                "missing": missing,
            })

        # --- STEP 3: FORM CONFIGURATION ---
        form = self.forms.resolve(form_id)
        if form is None:
            logger.warning("Webhook for unknown form '%s'", form_id)
            return WebhookResult(404, {"success": False, "error": "Form not found", "form": form_id})

        # --- STEP 4: EXTRACT & VALIDATE ---
        extracted = extract_fields(data, form.fields)
        if not extracted:
            logger.warning("Webhook '%s': no recognized fields in %s", form_id, list(data.keys()))
            return WebhookResult(400, {
                "success": False,
                "error": "Invalid form data",
                "message": "No recognized fields in submission",
                "form": form_id,
            })

        # --- STEP 5: FORMAT ---
        message = format_message(extracted, form.fields)
        logger.info("Formatted message for '%s' (%s fields)", form_id, len(extracted))

        # --- STEP 6: DISPATCH ---
        numbers = form.phone_numbers
        if not numbers:
            logger.warning("Form '%s' has no recipients configured", form_id)
        results = self.dispatcher.send_to_numbers(numbers, message)
        success = all_succeeded(results)

        duration = format_duration(time.monotonic() - started)
        logger.info("Webhook '%s' done in %s: success=%s", form_id, duration, success)
        return WebhookResult(200 if success else 207, {
            "success": success,
            "form": form_id,
            "message": "Messages sent successfully" if success else "Some messages failed",
            "duration": duration,
            "results": [r.model_dump() for r in results],
        })
