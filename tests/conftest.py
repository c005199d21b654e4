import httpx
import pytest
from fastapi.testclient import TestClient

from dashboard.backend.config import DashboardSettings
from dashboard.backend.main import create_app
from tests.helpers import (
    CEO_ID,
    NO_TIER_ID,
    OWN_ID,
    OWNER_ID,
    RESELLER_ID,
    FakeClock,
    FakePanel,
    write_json,
)


@pytest.fixture
def data_dir(tmp_path):
    root = tmp_path / "database"
    write_json(root / "tier.json", {
        CEO_ID: {"tier": "CEO", "createdAt": "2024-01-01T00:00:00Z", "adpCreated": {}},
        OWN_ID: {"tier": "OWN", "createdAt": "2024-01-02T00:00:00Z", "adpCreated": {}},
        "RESELLER": [RESELLER_ID],
    })
    write_json(root / "servers" / "srv1.json", [CEO_ID, OWN_ID, RESELLER_ID])
    write_json(root / "servers" / "srv2.json", [CEO_ID, NO_TIER_ID])
    write_json(root / "servers" / "srv3.json", [])
    return root


@pytest.fixture
def settings(tmp_path, data_dir):
    return DashboardSettings(
        _env_file=None,
        DATA_DIR=str(data_dir),
        PUBLIC_DIR=str(tmp_path / "public"),
        LOG_FILE=str(tmp_path / "logs" / "dashboard.log"),
        OWNER_IDS=OWNER_ID,
        SRV1_DOMAIN="https://panel-one.example.com",
        SRV1_API_KEY="ptla_srv1_key_0123456789",
        SRV2_DOMAIN="https://panel-two.example.com",
        SRV2_API_KEY="-",
        API_RATE_LIMIT=1000,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_panel():
    return FakePanel()


@pytest.fixture
def app(settings, clock, fake_panel):
    return create_app(settings, panel_transport=httpx.MockTransport(fake_panel), clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)
