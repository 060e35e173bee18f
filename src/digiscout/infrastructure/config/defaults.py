"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "digiscout",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "user_agent": "digiscout/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "provider": {
        "base_host": "digimoviez.com",
        "timeout_seconds": 15.0,
        "label_prefix": "[DigiMovie]",
    },
    "metadata": {
        "base_url": "https://v3-cinemeta.strem.io",
        "timeout_seconds": 10.0,
    },
    "relay": {
        "enabled": False,
        "public_url": "",
        "path": "proxy",
        "allowed_domains": [],
        "max_payload_bytes": 10 * 1024 * 1024,
        "timeout_seconds": 30.0,
        "max_redirects": 5,
    },
}
