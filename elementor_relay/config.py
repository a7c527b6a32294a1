"""
Settings loaded from the environment (and a local .env in development).

Every client receives its own settings struct in the constructor, so tests
can build a Settings by hand instead of patching os.environ.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ZAPISettings:
    """Z-API (WhatsApp provider) credentials."""

    instance_id: str = field(default_factory=lambda: os.getenv("ZAPI_INSTANCE_ID", ""))
    instance_token: str = field(default_factory=lambda: os.getenv("ZAPI_INSTANCE_TOKEN", ""))
    client_token: str = field(default_factory=lambda: os.getenv("ZAPI_CLIENT_TOKEN", ""))
    base_url: str = field(
        default_factory=lambda: os.getenv("ZAPI_BASE_URL", "https://api.z-api.io/instances")
    )

    def missing_keys(self) -> list[str]:
        """Env-var names of the credentials that are not set."""
        missing = []
        if not self.instance_id:
            missing.append("ZAPI_INSTANCE_ID")
        if not self.instance_token:
            missing.append("ZAPI_INSTANCE_TOKEN")
        if not self.client_token:
            missing.append("ZAPI_CLIENT_TOKEN")
        return missing


@dataclass(frozen=True)
class StoreSettings:
    """Cloudflare D1 (configuration store) credentials."""

    account_id: str = field(default_factory=lambda: os.getenv("CLOUDFLARE_ACCOUNT_ID", ""))
    api_token: str = field(default_factory=lambda: os.getenv("CLOUDFLARE_API_TOKEN", ""))
    database_id: str = field(default_factory=lambda: os.getenv("DATABASE_ID", ""))
    api_url: str = "https://api.cloudflare.com/client/v4"

    @property
    def base_url(self) -> str:
        return f"{self.api_url}/accounts/{self.account_id}/d1/database/{self.database_id}"

    def missing_keys(self) -> list[str]:
        missing = []
        if not self.account_id:
            missing.append("CLOUDFLARE_ACCOUNT_ID")
        if not self.api_token:
            missing.append("CLOUDFLARE_API_TOKEN")
        if not self.database_id:
            missing.append("DATABASE_ID")
        return missing


@dataclass(frozen=True)
class AlertSettings:
    """Where connectivity alerts go: email first, WhatsApp as backup."""

    email_to: str = field(default_factory=lambda: os.getenv("ALERT_EMAIL", ""))
    email_from: str = field(
        default_factory=lambda: os.getenv("ALERT_FROM_EMAIL", "alerts@elementor-whatsapp.dev")
    )
    resend_api_key: str = field(default_factory=lambda: os.getenv("RESEND_API_KEY", ""))
    resend_url: str = "https://api.resend.com/emails"
    whatsapp_number: str = field(default_factory=lambda: os.getenv("ALERT_WHATSAPP_NUMBER", ""))


@dataclass(frozen=True)
class MonitoringSettings:
    enabled: bool = field(default_factory=lambda: _env_bool("MONITORING_ENABLED", False))
    interval_seconds: int = field(default_factory=lambda: _env_int("MONITORING_INTERVAL", 300))
    provider_key: str = "zapi"
    history_limit: int = 100


@dataclass(frozen=True)
class Settings:
    """
    Root settings container.

    Usage:
        from elementor_relay.config import get_settings
        settings = get_settings()
        print(settings.zapi.instance_id)
    """

    zapi: ZAPISettings = field(default_factory=ZAPISettings)
    store: StoreSettings = field(default_factory=StoreSettings)
    alerts: AlertSettings = field(default_factory=AlertSettings)
    monitoring: MonitoringSettings = field(default_factory=MonitoringSettings)

    worker_url: str = field(
        default_factory=lambda: os.getenv("WORKER_URL", "http://localhost:8000").rstrip("/")
    )
    request_timeout: int = field(default_factory=lambda: _env_int("REQUEST_TIMEOUT", 30))
    dispatch_max_workers: int = field(default_factory=lambda: _env_int("DISPATCH_MAX_WORKERS", 20))
    legacy_fields_file: Path | None = field(
        default_factory=lambda: Path(os.environ["LEGACY_FIELDS_FILE"])
        if os.getenv("LEGACY_FIELDS_FILE") else None
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def missing_keys(self) -> list[str]:
        """Everything the webhook path needs, enumerated for the health check."""
        return self.zapi.missing_keys() + self.store.missing_keys()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings singleton, read once from the environment."""
    return Settings()
