"""
Пользователи дашборда.

Отдельного хранилища пользователей нет: пользователь существует, пока
у него есть тир, доступ к серверу или он указан владельцем в настройках.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from dashboard.backend.config import DashboardSettings
from dashboard.backend.errors import ValidationFailed
from dashboard.backend.services.access import AccessRegistry
from dashboard.backend.services.permissions import Principal
from dashboard.backend.services.tiers import Tier, TierRegistry, parse_tier

logger = logging.getLogger("dashboard.services.users")


@dataclass(frozen=True)
class UserSummary:
    """Строка списка пользователей."""

    id: str
    tier: Optional[Tier]
    access: tuple[str, ...]
    is_owner: bool


class UserDirectory:
    """
    Объединяет реестр тиров, реестр доступа и список владельцев.
    """

    def __init__(self, settings: DashboardSettings, tiers: TierRegistry, access: AccessRegistry):
        self.settings = settings
        self.tiers = tiers
        self.access = access

    def is_owner(self, user_id: str) -> bool:
        return self.settings.is_owner(user_id)

    def principal(self, user_id: str) -> Principal:
        """Текущие права пользователя по данным реестров."""
        user_id = str(user_id)
        return Principal(
            user_id=user_id,
            tier=self.tiers.get_tier(user_id),
            is_owner=self.is_owner(user_id),
            access=self.access.get_access(user_id),
        )

    def exists(self, user_id: str) -> bool:
        """Пользователь известен, если у него есть доступ, тир или он владелец."""
        user_id = str(user_id)
        if self.is_owner(user_id):
            return True
        if self.access.get_access(user_id):
            return True
        return self.tiers.get_record(user_id) is not None

    def list_users(self) -> list[UserSummary]:
        """Все пользователи из списков серверов и реестра тиров."""
        records = self.tiers.all_records()
        ids = list(dict.fromkeys([*self.access.all_members(), *records.keys()]))
        server_members = {server: set(self.access.members(server)) for server in self.access.servers}

        users = []
        for user_id in ids:
            record = records.get(user_id)
            users.append(UserSummary(
                id=user_id,
                tier=record.tier if record else None,
                access=tuple(s for s in self.access.servers if user_id in server_members[s]),
                is_owner=self.is_owner(user_id),
            ))
        return users

    def update_user(self, user_id: str, tier: Optional[Tier | str], servers: Iterable[str]) -> Principal:
        """Заменяет тир и доступ пользователя. Пользователь создаётся неявно."""
        user_id = str(user_id)
        servers = frozenset(servers)
        if servers.difference(self.access.servers):
            raise ValidationFailed("Неизвестный сервер")
        tier = parse_tier(tier)

        self.tiers.set_tier(user_id, tier)
        self.access.set_access(user_id, servers)
        return self.principal(user_id)

    def delete_user(self, user_id: str) -> None:
        """Удаляет тир пользователя и убирает его из списков всех серверов."""
        user_id = str(user_id)
        self.tiers.delete(user_id)
        self.access.remove_user(user_id)
        logger.info(f"Пользователь {user_id} удалён из реестров")
