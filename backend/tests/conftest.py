from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from provider_fakes import FakeAdviceProvider  # noqa: E402


@pytest.fixture
def fake_provider() -> FakeAdviceProvider:
    return FakeAdviceProvider()


@pytest.fixture
def backend_module(monkeypatch):
    monkeypatch.setenv("HEALTHTRAIL_ADVICE_PROVIDER", "openrouter")
    monkeypatch.setenv("HEALTHTRAIL_LOG_LEVEL", "WARNING")
    # Keep CI deterministic; provider tests inject their own transport.
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client
