"""
Создание панелей (аккаунтов Pterodactyl) по запросу пользователя.

Сгенерированный пароль возвращается один раз и нигде не сохраняется.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from dashboard.backend.config import DashboardSettings, ServerConfig
from dashboard.backend.errors import (
    Forbidden,
    PanelNameTaken,
    ServerNotConfigured,
    UpstreamFailure,
    ValidationFailed,
)
from dashboard.backend.services.access import AccessRegistry
from dashboard.backend.services.permissions import Principal
from dashboard.backend.services.pterodactyl import PanelApiError, PterodactylClient
from dashboard.backend.utils.security import generate_panel_password

logger = logging.getLogger("dashboard.services.provisioning")


@dataclass(frozen=True)
class PanelCredentials:
    """Данные созданной панели (показываются пользователю один раз)."""

    id: int
    username: str
    email: str
    password: str
    server: str
    ram_limit: int


class PanelProvisioner:
    """
    Проверяет доступ к серверу и создаёт аккаунт на панели.

    Args:
        settings: настройки дашборда (серверы, таймаут, домен email)
        access: реестр доступа (доступ перепроверяется на момент запроса)
        transport: транспорт httpx для клиента панели (подменяется в тестах)
    """

    def __init__(
        self,
        settings: DashboardSettings,
        access: AccessRegistry,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.access = access
        self.transport = transport

    def client_for(self, server: ServerConfig) -> PterodactylClient:
        return PterodactylClient(
            server,
            timeout=self.settings.PANEL_API_TIMEOUT,
            transport=self.transport,
        )

    async def provision(
        self,
        principal: Principal,
        name: str,
        server_key: str,
        ram_limit: int,
    ) -> PanelCredentials:
        """
        Создаёт панель для пользователя.

        Raises:
            Forbidden: нет доступа к серверу
            ServerNotConfigured: у сервера нет домена или ключа
            PanelNameTaken: имя уже существует на панели
            UpstreamFailure: любая ошибка API панели
        """
        server = self.settings.servers.get(server_key)
        if server is None:
            raise ValidationFailed("Неизвестный сервер")

        if server_key not in self.access.get_access(principal.user_id):
            logger.warning(f"Пользователь {principal.user_id} без доступа к {server_key} пытался создать панель")
            raise Forbidden("Нет доступа к этому серверу")

        if not server.is_configured:
            raise ServerNotConfigured()

        client = self.client_for(server)
        try:
            if await client.user_exists(name):
                raise PanelNameTaken()

            password = generate_panel_password(name)
            email = f"{name}@{self.settings.PANEL_EMAIL_DOMAIN}"
            created = await client.create_user(name, email, password)
        except PanelApiError as e:
            logger.error(f"Ошибка API панели для {principal.user_id}: {e} (detail: {e.detail})")
            raise UpstreamFailure() from e

        logger.info(
            f"Пользователь {principal.user_id} создал панель {name} на {server_key} "
            f"(RAM: {ram_limit or 'unlimited'})"
        )
        return PanelCredentials(
            id=int(created.get("id", 0)),
            username=created.get("username", name),
            email=created.get("email", email),
            password=password,
            server=server_key,
            ram_limit=ram_limit,
        )
