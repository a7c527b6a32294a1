"""Exception hierarchy shared by the webhook pipeline, the CLI and monitoring."""


class RelayError(Exception):
    """Base class for every error raised by this package."""


class StoreError(RelayError):
    """The configuration store (D1 over HTTP) failed or rejected a query."""


class ProviderError(RelayError):
    """The WhatsApp provider (Z-API) rejected a call or was unreachable."""

    def __init__(self, message: str, payload=None, status_code: int | None = None):
        super().__init__(message)
        self.payload = payload
        self.status_code = status_code


class ConfigurationError(RelayError):
    """Required settings are missing."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required configuration: {', '.join(missing)}")
        self.missing = missing
