"""
AlertService: connectivity alerts.
Email through Resend is the primary channel; when it is not configured or
fails, the alert goes out over WhatsApp through Z-API instead.
"""

import html
import logging
from typing import Optional

import requests

from elementor_relay.config import AlertSettings
from elementor_relay.errors import ProviderError
from elementor_relay.services.zapi_service import ZAPIService

logger = logging.getLogger(__name__)


class AlertService:

    def __init__(self, settings: AlertSettings, zapi: Optional[ZAPIService] = None,
                 timeout: int = 30, session: Optional[requests.Session] = None):
        self.settings = settings
        self.zapi = zapi
        self.timeout = timeout
        self.http = session or requests.Session()

    def send_email(self, subject: str, text: str) -> bool:
        if not self.settings.email_to or not self.settings.resend_api_key:
            logger.warning("Alert email not configured (ALERT_EMAIL / RESEND_API_KEY)")
            return False

        payload = {
            "from": self.settings.email_from,
            "to": [self.settings.email_to],
            "subject": subject,
            "text": text,
            "html": f"<pre>{html.escape(text)}</pre>",
        }
        headers = {
            "Authorization": f"Bearer {self.settings.resend_api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.http.post(self.settings.resend_url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Alert email failed: %s", e)
            return False

        if not response.ok:
            logger.error("Alert email rejected: HTTP %s %s", response.status_code, response.text)
            return False

        logger.info("Alert email sent to %s", self.settings.email_to)
        return True

    def send_whatsapp(self, text: str) -> bool:
        if not self.zapi or not self.settings.whatsapp_number:
            logger.warning("WhatsApp alert backup not configured (ALERT_WHATSAPP_NUMBER)")
            return False
        try:
            self.zapi.send_text(self.settings.whatsapp_number, text)
        except ProviderError as e:
            logger.error("WhatsApp alert failed: %s", e)
            return False
        return True

    def notify(self, subject: str, text: str) -> str | None:
        """Send one alert. Returns the channel that delivered it, or None."""
        if self.send_email(subject, text):
            return "email"
        if self.send_whatsapp(f"*{subject}*\n\n{text}"):
            return "whatsapp"
        logger.error("Alert '%s' could not be delivered on any channel", subject)
        return None
