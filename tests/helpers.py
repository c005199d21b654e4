import json

import httpx
from fastapi.testclient import TestClient

OWNER_ID = "999999999"
CEO_ID = "100000001"
OWN_ID = "100000002"
RESELLER_ID = "100000003"
NO_TIER_ID = "100000004"


class FakeClock:
    """Управляемое время для сессий и блокировок."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePanel:
    """Обработчик httpx.MockTransport, имитирующий Application API панели."""

    def __init__(self):
        self.users: list[dict] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, json={"errors": [{"detail": "boom"}]})

        if request.method == "GET":
            wanted = request.url.params.get("filter[username]", "")
            data = [
                {"object": "user", "attributes": user}
                for user in self.users
                if wanted.lower() in user["username"].lower()
            ]
            return httpx.Response(200, json={"object": "list", "data": data})

        payload = json.loads(request.content)
        user = {
            "id": len(self.users) + 1,
            "username": payload["username"],
            "email": payload["email"],
        }
        self.users.append(user)
        return httpx.Response(201, json={"object": "user", "attributes": user})


def write_json(path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def login(client: TestClient, user_id: str, remember: bool = False) -> str:
    """Входит под пользователем и возвращает CSRF токен сессии."""
    response = client.post("/api/auth/login", json={"telegramId": user_id, "rememberMe": remember})
    assert response.status_code == 200, response.text
    return response.json()["csrfToken"]
