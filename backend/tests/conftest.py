from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from engine_fakes import FakeEngineFactory  # noqa: E402


@pytest.fixture
def backend_module(monkeypatch):
    monkeypatch.delenv("CAREASSIST_AI_API_KEY", raising=False)
    # Keep CI deterministic; dedicated matcher tests can override this.
    monkeypatch.setenv("CAREASSIST_DISABLE_EXTERNAL_GEO", "true")

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client


@pytest.fixture
def engine_factory() -> FakeEngineFactory:
    return FakeEngineFactory()
