"""Test doubles for the provider and the form configuration."""

from elementor_relay.errors import ProviderError


class StubZAPI:
    """Records sends; numbers listed in `failing` get a provider error."""

    def __init__(self, failing=(), status=None):
        self.sent = []
        self.failing = set(failing)
        self.status = status if status is not None else {"connected": True, "session": True}

    def send_text(self, phone, message):
        self.sent.append({"phone": phone, "message": message})
        if phone in self.failing:
            raise ProviderError("HTTP 500", payload={"error": "instance not connected"}, status_code=500)
        return {"zaapId": f"z-{phone}", "messageId": f"m-{phone}"}

    def get_status(self):
        if isinstance(self.status, Exception):
            raise self.status
        return self.status


class StubFormService:
    def __init__(self, forms=None):
        self.forms = forms or {}
        self.resolved = []

    def resolve(self, form_id):
        self.resolved.append(form_id)
        return self.forms.get(form_id)
