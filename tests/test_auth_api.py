import pytest
from fastapi.testclient import TestClient

from dashboard.backend.main import create_app
from tests.helpers import CEO_ID, NO_TIER_ID, OWNER_ID, RESELLER_ID, login, write_json


def test_login_with_current_format_user(client):
    response = client.post("/api/auth/login", json={"telegramId": CEO_ID})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user"] == {"id": CEO_ID, "tier": "CEO", "isOwner": False, "access": ["srv1", "srv2"]}
    assert data["csrfToken"]
    assert "dashboard_session" in response.cookies


def test_login_accepts_numeric_id_and_legacy_tier(client):
    response = client.post("/api/auth/login", json={"telegramId": int(RESELLER_ID)})

    assert response.status_code == 200
    assert response.json()["user"]["tier"] == "RESELLER"


def test_owner_without_registry_entries_can_log_in(client):
    login(client, OWNER_ID)

    data = client.get("/api/auth/check").json()
    assert data["isOwner"] is True
    assert data["tier"] is None
    assert all(data["permissions"].values())


def test_user_with_access_only_can_log_in(client):
    login(client, NO_TIER_ID)

    data = client.get("/api/auth/check").json()
    assert data["tier"] is None
    assert data["access"] == ["srv2"]
    assert data["permissions"]["create_panel"] is False


def test_unknown_id_is_rejected(client):
    response = client.post("/api/auth/login", json={"telegramId": "123456789"})

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_malformed_id_is_validation_error(client):
    response = client.post("/api/auth/login", json={"telegramId": "12ab"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"


def test_lockout_after_five_failures(client, clock):
    for _ in range(5):
        assert client.post("/api/auth/login", json={"telegramId": "123456789"}).status_code == 401

    # Даже верный ID отклоняется во время блокировки
    response = client.post("/api/auth/login", json={"telegramId": CEO_ID})
    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) == 900

    clock.advance(15 * 60)
    assert client.post("/api/auth/login", json={"telegramId": CEO_ID}).status_code == 200


def test_success_resets_failure_count(client):
    for _ in range(4):
        client.post("/api/auth/login", json={"telegramId": "123456789"})
    login(client, CEO_ID)

    for _ in range(4):
        assert client.post("/api/auth/login", json={"telegramId": "123456789"}).status_code == 401
    assert client.post("/api/auth/login", json={"telegramId": CEO_ID}).status_code == 200


def test_login_issues_new_session(client):
    login(client, CEO_ID)
    old_cookie = client.cookies.get("dashboard_session")

    login(client, CEO_ID)
    new_cookie = client.cookies.get("dashboard_session")
    assert new_cookie != old_cookie

    client.cookies.clear()
    client.cookies.set("dashboard_session", old_cookie)
    assert client.get("/api/auth/check").status_code == 401


def test_check_requires_session(client):
    response = client.get("/api/auth/check")

    assert response.status_code == 401
    assert response.json() == {"success": False, "code": "UNAUTHENTICATED", "message": "Требуется авторизация"}


def test_tampered_cookie_is_rejected(client):
    login(client, CEO_ID)
    cookie = client.cookies.get("dashboard_session")
    client.cookies.clear()
    client.cookies.set("dashboard_session", cookie + "x")

    assert client.get("/api/auth/check").status_code == 401


def test_session_expires(client, clock):
    login(client, CEO_ID)
    clock.advance(24 * 3600)

    assert client.get("/api/auth/check").status_code == 401


def test_csrf_token_endpoint(client):
    assert client.get("/api/csrf-token").status_code == 401

    token = login(client, CEO_ID)
    assert client.get("/api/csrf-token").json()["csrfToken"] == token


def test_logout_requires_csrf(client):
    token = login(client, CEO_ID)

    response = client.post("/api/auth/logout")
    assert response.status_code == 403
    assert response.json()["code"] == "FORGERY_SUSPECTED"
    assert client.get("/api/auth/check").status_code == 200

    response = client.post("/api/auth/logout", headers={"X-CSRF-Token": token})
    assert response.status_code == 200
    assert client.get("/api/auth/check").status_code == 401


def test_logout_without_session(client):
    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_csrf_from_json_body(client):
    token = login(client, CEO_ID)

    response = client.post("/api/auth/logout", json={"_csrf": token})

    assert response.status_code == 200


def test_refresh_picks_up_registry_changes(client, data_dir):
    token = login(client, RESELLER_ID)
    (data_dir / "servers" / "srv3.json").write_text(f'["{RESELLER_ID}"]', encoding="utf-8")

    # Снимок сессии не меняется сам по себе
    assert client.get("/api/auth/check").json()["access"] == ["srv1"]

    response = client.post("/api/auth/refresh", headers={"X-CSRF-Token": token})
    assert response.status_code == 200
    assert response.json()["access"] == ["srv1", "srv3"]


def test_refresh_ends_session_of_removed_user(client, data_dir):
    token = login(client, NO_TIER_ID)
    (data_dir / "servers" / "srv2.json").write_text("[]", encoding="utf-8")

    response = client.post("/api/auth/refresh", headers={"X-CSRF-Token": token})

    assert response.status_code == 401
    assert client.get("/api/auth/check").status_code == 401


def test_security_headers_and_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


def test_unknown_route_is_not_found(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.parametrize("identifier", ["1000000'01", "100000001;", "<100000001>", '"100000001"', "10000\x0b0001"])
def test_identifier_with_stripped_characters_is_rejected(client, identifier):
    response = client.post("/api/auth/login", json={"telegramId": identifier})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"


@pytest.mark.parametrize(
    "body",
    [
        {"telegramId": "1" * 70},
        {},
        {"telegramId": True},
        {"telegramId": [CEO_ID]},
        {"telegramId": None},
    ],
)
def test_malformed_logins_count_towards_lockout(client, body):
    for _ in range(5):
        assert client.post("/api/auth/login", json=body).status_code == 400

    assert client.post("/api/auth/login", json={"telegramId": CEO_ID}).status_code == 429


def test_non_object_bodies_count_towards_lockout(client):
    client.post("/api/auth/login", content=b"not json", headers={"Content-Type": "application/json"})
    client.post("/api/auth/login", json=[CEO_ID])
    client.post("/api/auth/login", json=CEO_ID)
    client.post("/api/auth/login")
    response = client.post("/api/auth/login", content=b"\xff\xfe", headers={"Content-Type": "application/json"})
    assert response.status_code == 400

    assert client.post("/api/auth/login", json={"telegramId": CEO_ID}).status_code == 429


def test_forwarded_for_is_ignored_without_trusted_proxy(app, client):
    for i in range(5):
        client.post(
            "/api/auth/login",
            json={"telegramId": "123456789"},
            headers={"X-Forwarded-For": f"10.0.0.{i}"},
        )

    response = client.post(
        "/api/auth/login",
        json={"telegramId": CEO_ID},
        headers={"X-Forwarded-For": "10.0.0.99"},
    )
    assert response.status_code == 429
    assert app.state.login_attempts.active_count() == 1


def test_forwarded_for_from_trusted_proxy(settings, clock):
    trusted = settings.model_copy(update={"TRUSTED_PROXIES": "testclient"})
    client = TestClient(create_app(trusted, clock=clock))

    for _ in range(5):
        client.post(
            "/api/auth/login",
            json={"telegramId": "123456789"},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )

    locked = client.post("/api/auth/login", json={"telegramId": CEO_ID}, headers={"X-Forwarded-For": "203.0.113.7"})
    assert locked.status_code == 429

    # Подставленный клиентом адрес левее реального не помогает
    spoofed = client.post(
        "/api/auth/login",
        json={"telegramId": CEO_ID},
        headers={"X-Forwarded-For": "198.51.100.1, 203.0.113.7"},
    )
    assert spoofed.status_code == 429

    other = client.post("/api/auth/login", json={"telegramId": CEO_ID}, headers={"X-Forwarded-For": "203.0.113.8"})
    assert other.status_code == 200


def test_login_rate_limit(settings, clock):
    limited = settings.model_copy(update={"LOGIN_RATE_LIMIT": 2})
    client = TestClient(create_app(limited, clock=clock))

    assert client.post("/api/auth/login", json={"telegramId": CEO_ID}).status_code == 200
    assert client.post("/api/auth/login", json={"telegramId": CEO_ID}).status_code == 200
    response = client.post("/api/auth/login", json={"telegramId": CEO_ID})

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) == 15 * 60


def test_login_with_conflicting_tier_records(client, data_dir):
    write_json(data_dir / "tier.json", {
        "555555555": {"tier": "CEO"},
        "RESELLER": ["555555555"],
    })

    response = client.post("/api/auth/login", json={"telegramId": "555555555"})

    assert response.status_code == 409
    assert response.json()["code"] == "TIER_CONFLICT"
