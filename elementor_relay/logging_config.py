"""
Structured logging configuration for the entire application.
Call setup_logging() once at startup (main.py, cli.py).
"""

import logging
import sys


def setup_logging(level: str = "INFO"):
    """Configure structured logging to stdout for the 'elementor_relay' namespace."""
    root = logging.getLogger("elementor_relay")
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    # Reconfiguring (uvicorn reload, CLI re-entry) must not duplicate lines
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)
