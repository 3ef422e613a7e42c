"""
Smoke-test fixtures.

Smoke tests talk to an already running server over HTTP.  They are
skipped unless ``TEST_BASE_URL`` points at one, so a plain ``pytest``
run never needs a live deployment.
"""

from __future__ import annotations

import os

import pytest


@pytest.fixture(scope="session")
def smoke_base_url() -> str:
    """Return the base URL of the deployment under test, or skip."""
    base_url = os.getenv("TEST_BASE_URL")
    if not base_url:
        pytest.skip("TEST_BASE_URL is not set; smoke tests need a running server")
    return base_url.rstrip("/")
