"""
DispatchService: fan-out of one message to every recipient number.

Each number gets exactly one attempt; a failure is recorded in its result
and never stops the other sends. All sends are joined before returning.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from elementor_relay.errors import ProviderError
from elementor_relay.models.form_models import MIN_PHONE_DIGITS, DispatchResult
from elementor_relay.services.zapi_service import ZAPIService

logger = logging.getLogger(__name__)


class DispatchService:

    def __init__(self, zapi: ZAPIService, max_workers: int = 20):
        self.zapi = zapi
        self.max_workers = max(1, max_workers)

    def _send_one(self, number: str, message: str) -> DispatchResult:
        if len(number or "") < MIN_PHONE_DIGITS:
            logger.warning("Skipping invalid recipient number '%s'", number)
            return DispatchResult(number=number or "", success=False, error="Invalid phone number")
        try:
            data = self.zapi.send_text(number, message)
            return DispatchResult(number=number, success=True, data=data)
        except ProviderError as e:
            return DispatchResult(number=number, success=False, error=e.payload or str(e))
        except Exception as e:
            logger.exception("Unexpected error sending to %s", number)
            return DispatchResult(number=number, success=False, error=str(e))

    def send_to_numbers(self, numbers: list[str], message: str) -> list[DispatchResult]:
        """One result per number, in input order."""
        if not numbers:
            return []

        workers = min(self.max_workers, len(numbers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dispatch") as pool:
            results = list(pool.map(lambda n: self._send_one(n, message), numbers))

        sent = sum(1 for r in results if r.success)
        logger.info("Dispatch finished: %s sent, %s failed", sent, len(results) - sent)
        return results


def all_succeeded(results: list[DispatchResult]) -> bool:
    return all(r.success for r in results)
