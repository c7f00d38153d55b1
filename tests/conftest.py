import json
import pathlib

import pytest

from healsync_client import config

FIX = pathlib.Path(__file__).parent / "fixtures"
BASE = "http://healsync.test"


@pytest.fixture(autouse=True)
def backend_settings(monkeypatch):
    """Point every call at the mocked backend regardless of the local .env."""
    monkeypatch.setattr(config, "BASE_URL", BASE)
    monkeypatch.setattr(config, "API_PREFIX", "/v1/healsync")
    monkeypatch.setattr(config, "SLOT_DURATION_MINUTES", 60)
    monkeypatch.setattr(config, "REDIRECT_DELAY", 2.0)
    monkeypatch.setattr(config, "STORE_PATH", "")


@pytest.fixture
def load_fixture():
    def _load(name: str):
        return json.loads((FIX / name).read_text())
    return _load
