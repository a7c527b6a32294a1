import json
import logging
from typing import Any, Optional

import requests

from elementor_relay.config import ZAPISettings
from elementor_relay.errors import ProviderError

logger = logging.getLogger(__name__)


class ZAPIService:
    """
    Z-API client: sends WhatsApp text messages and reads the instance status.
    Raises ProviderError on any failure; callers decide whether that is fatal.
    """

    def __init__(self, settings: ZAPISettings, timeout: int = 30, session: Optional[requests.Session] = None):
        self.settings = settings
        self.timeout = timeout
        self.http = session or requests.Session()

    @property
    def instance_url(self) -> str:
        return f"{self.settings.base_url}/{self.settings.instance_id}/token/{self.settings.instance_token}"

    def _headers(self) -> dict:
        return {
            'Client-Token': self.settings.client_token,
            'Content-Type': 'application/json',
        }

    @staticmethod
    def _payload(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def send_text(self, phone: str, message: str) -> Any:
        """POST /send-text. Returns the provider payload (zaapId, messageId...)."""
        url = f"{self.instance_url}/send-text"
        try:
            # ensure_ascii=False keeps accents intact in the WhatsApp message
            response = self.http.post(
                url,
                headers=self._headers(),
                data=json.dumps({'phone': phone, 'message': message}, ensure_ascii=False).encode('utf-8'),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Failed to send message to %s: %s", phone, e)
            raise ProviderError(str(e)) from e

        payload = self._payload(response)
        if not response.ok:
            logger.error("Failed to send message to %s: HTTP %s %s", phone, response.status_code, payload)
            raise ProviderError(f"HTTP {response.status_code}", payload=payload, status_code=response.status_code)

        logger.info("Message sent to %s: %s", phone, payload)
        return payload

    def get_status(self) -> dict:
        """GET /status -> {connected, session, smartphoneConnected, error}."""
        url = f"{self.instance_url}/status"
        try:
            response = self.http.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Z-API status check failed: %s", e)
            raise ProviderError(str(e)) from e

        payload = self._payload(response)
        if not response.ok or not isinstance(payload, dict):
            raise ProviderError(f"HTTP {response.status_code}", payload=payload, status_code=response.status_code)
        return payload
