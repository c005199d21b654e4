"""
Клиент Application API панели Pterodactyl.

Используется только для проверки имени и создания аккаунта.
Повторных попыток нет: создание аккаунта не идемпотентно.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from dashboard.backend.config import ServerConfig
from dashboard.backend.utils.security import mask_sensitive_data

logger = logging.getLogger("dashboard.services.pterodactyl")

PTERODACTYL_ACCEPT = "Application/vnd.pterodactyl.v1+json"


class PanelApiError(Exception):
    """Ошибка обращения к API панели (сеть, таймаут, не-2xx ответ)."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class PterodactylClient:
    """
    Клиент одного сервера Pterodactyl.

    Args:
        server: настройки сервера (домен и Application API ключ)
        timeout: таймаут запроса в секундах
        transport: транспорт httpx (подменяется в тестах)
    """

    def __init__(
        self,
        server: ServerConfig,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.server = server
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.server.api_key}",
            "Accept": PTERODACTYL_ACCEPT,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.server.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                headers=self._headers(),
            ) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                logger.debug(f"Pterodactyl {method} {path}: {response.status_code}")
                return response.json()
        except httpx.HTTPStatusError as e:
            raise PanelApiError(
                f"{self.server.key}: {method} {path} вернул {e.response.status_code}",
                status_code=e.response.status_code,
                detail=e.response.text[:500],
            ) from e
        except httpx.HTTPError as e:
            raise PanelApiError(
                f"{self.server.key}: {method} {path} не выполнен ({type(e).__name__})",
                detail=str(e),
            ) from e
        except ValueError as e:
            # Ответ не является JSON
            raise PanelApiError(f"{self.server.key}: некорректный ответ на {method} {path}") from e

    async def user_exists(self, username: str) -> bool:
        """Проверяет, есть ли на панели пользователь с таким именем."""
        data = await self._request(
            "GET",
            "/api/application/users",
            params={"filter[username]": username},
        )
        items = data.get("data") or []
        # Фильтр панели ищет по подстроке, сверяем имя точно
        return any(
            (item.get("attributes") or {}).get("username", "").lower() == username.lower()
            for item in items
        )

    async def create_user(self, username: str, email: str, password: str) -> dict:
        """
        Создаёт аккаунт на панели.

        Returns:
            Атрибуты созданного пользователя (id, username, email, ...)
        """
        logger.info(
            f"Создание пользователя {username} на {self.server.key} "
            f"(ключ {mask_sensitive_data(self.server.api_key)})"
        )
        data = await self._request(
            "POST",
            "/api/application/users",
            json={
                "username": username,
                "email": email,
                "first_name": username,
                "last_name": "User",
                "password": password,
                "root_admin": False,
            },
        )
        attributes = data.get("attributes")
        if not isinstance(attributes, dict):
            raise PanelApiError(f"{self.server.key}: в ответе нет attributes", detail=data)
        return attributes
