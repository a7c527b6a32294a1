"""
D1Client: SQL over HTTP against the Cloudflare D1 REST API.
Stateless: every call is an independent request, nothing is cached.
"""

import logging
from typing import Any, Iterable, Optional

import requests

from elementor_relay.config import StoreSettings
from elementor_relay.errors import StoreError

logger = logging.getLogger(__name__)

Statement = tuple[str, list]


class D1Client:

    def __init__(self, settings: StoreSettings, timeout: int = 30, session: Optional[requests.Session] = None):
        self.settings = settings
        self.timeout = timeout
        self.http = session or requests.Session()

    def _headers(self) -> dict:
        return {
            'Authorization': f'Bearer {self.settings.api_token}',
            'Content-Type': 'application/json',
        }

    def _post(self, payload: dict) -> list[dict]:
        url = f"{self.settings.base_url}/query"
        try:
            response = self.http.post(url, headers=self._headers(), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("D1 request failed: %s", e)
            raise StoreError(f"Database request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            logger.error("D1 returned a non-object body (HTTP %s)", response.status_code)
            raise StoreError("Unexpected database response shape")

        if not response.ok or not data.get('success', response.ok):
            errors = data.get('errors') or []
            message = errors[0].get('message') if errors and isinstance(errors[0], dict) else None
            message = message or f"Database query failed (HTTP {response.status_code})"
            logger.error("D1 error: %s", message)
            raise StoreError(message)

        result = data.get('result')
        if not isinstance(result, list):
            raise StoreError("Unexpected database response shape")
        return result

    def query(self, sql: str, params: Iterable[Any] = ()) -> dict:
        """Run one statement. Returns the first result block: {results, meta}."""
        result = self._post({'sql': sql, 'params': list(params)})
        if not result:
            return {'results': [], 'meta': {}}
        return result[0]

    def rows(self, sql: str, params: Iterable[Any] = ()) -> list[dict]:
        return self.query(sql, params).get('results') or []

    def first(self, sql: str, params: Iterable[Any] = ()) -> Optional[dict]:
        rows = self.rows(sql, params)
        return rows[0] if rows else None

    def batch(self, statements: list[Statement]) -> list[dict]:
        """
        Run several statements in one request.
        D1 executes a batch as a single transaction: either every statement
        applies or none does.
        """
        if not statements:
            return []
        payload = {'batch': [{'sql': sql, 'params': list(params)} for sql, params in statements]}
        logger.debug("D1 batch with %s statements", len(statements))
        return self._post(payload)

    def ping(self) -> bool:
        """Cheap connectivity probe used by /health."""
        self.query("SELECT 1 AS ok")
        return True
