"""Shared fixtures for integration tests.

These tests wire real components (config loader, provider adapter,
session manager, matcher, extractor, gateway) with mocked HTTP via respx.
"""

from __future__ import annotations

import os

import pytest
import respx


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop any DIGISCOUT_* variables inherited from the developer's shell."""
    for key in list(os.environ):
        if key.upper().startswith("DIGISCOUT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router
