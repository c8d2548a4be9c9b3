"""Shared pytest fixtures."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from dashsense.cardinality.client import get_cardinality_client
from dashsense.config import ENV_PREFIX, reset_config

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Strip DASHSENSE_* variables and drop process-wide caches around each test."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    get_cardinality_client.cache_clear()
    yield
    reset_config()
    get_cardinality_client.cache_clear()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
