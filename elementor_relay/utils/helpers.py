import json
import logging
from typing import Any, Dict
from urllib.parse import parse_qsl

logger = logging.getLogger(__name__)


def parse_request_body(raw: bytes | str) -> Dict[str, Any]:
    """
    Decode a webhook body: JSON first, URL-encoded as fallback.
    Never raises; anything that is not an object ends up as {}.
    """
    if isinstance(raw, bytes):
        text = raw.decode("utf-8", errors="replace")
    else:
        text = raw or ""

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except ValueError as e:
        logger.info("Body is not JSON (%s), trying URL-encoded", e)
        # Elementor posts form-encoded bodies; repeated keys keep the last value
        data = dict(parse_qsl(text, keep_blank_values=True))

    if not isinstance(data, dict):
        logger.warning("Body decoded to %s, ignoring it", type(data).__name__)
        return {}
    return data


def format_duration(seconds: float) -> str:
    """Human readable duration: 850µs, 120ms, 1.25s."""
    if seconds < 0.001:
        return f"{int(seconds * 1_000_000)}µs"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    return f"{seconds:.2f}s"
