from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from storefront.container import Services, build_services
from storefront.core.config import AppSettings, AuthSettings, DatabaseSettings, Settings
from storefront.gateway.fake_adapter import FakeGateway
from storefront.mail.fake_adapter import FakeMailer
from web.main import create_app

CLIENT_URL = "http://shop.test"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    # Isolated database per test; bcrypt at its cheapest cost
    return Settings(
        app=AppSettings(client_url=CLIENT_URL, cors_origins=[CLIENT_URL]),
        auth=AuthSettings(
            access_token_secret="test-access-secret",
            refresh_token_secret="test-refresh-secret",
            bcrypt_rounds=4,
        ),
        database=DatabaseSettings(path=str(tmp_path / "storefront.db")),
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def services(settings: Settings, gateway: FakeGateway, mailer: FakeMailer) -> Services:
    return build_services(settings, gateway=gateway, mailer=mailer)


@pytest.fixture
def client(services: Services) -> TestClient:
    return TestClient(create_app(services))


def signup_payload(email: str = "jane@example.com", password: str = "secret123") -> Dict[str, str]:
    return {
        "user_name": "Jane",
        "email": email,
        "phone_number": "5550100",
        "user_password": password,
    }


@pytest.fixture
def logged_in_client(client: TestClient) -> TestClient:
    res = client.post("/api/auth/signup", json=signup_payload())
    assert res.status_code == 201, res.text
    return client
