"""
Политика прав дашборда.

Единственное место, где решается, что пользователю можно. Роуты
проверяют права через `is_allowed`, а фронтенд получает готовую карту
прав из `permissions_for`, поэтому правила не дублируются.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from dashboard.backend.services.tiers import Tier, tier_rank


class Capability(str, enum.Enum):
    """Действия, доступ к которым проверяется."""

    VIEW_OVERVIEW = "view_overview"
    VIEW_SERVERS = "view_servers"
    CREATE_PANEL = "create_panel"
    VIEW_USERS = "view_users"
    MANAGE_TIERS = "manage_tiers"
    VIEW_SETTINGS = "view_settings"
    MODIFY_USERS = "modify_users"


# Минимальный тир для просмотра списка пользователей
USERS_MIN_TIER = Tier.OWN


@dataclass(frozen=True)
class Principal:
    """Снимок прав пользователя: тир, статус владельца и доступ к серверам."""

    user_id: str
    tier: Optional[Tier] = None
    is_owner: bool = False
    access: frozenset[str] = field(default_factory=frozenset)


def is_allowed(principal: Principal, capability: Capability, server: Optional[str] = None) -> bool:
    """
    Решает, разрешено ли действие.

    Владелец проходит любую проверку. Для CREATE_PANEL с указанным
    сервером дополнительно требуется доступ к нему. Неизвестное действие
    запрещено.
    """
    if principal.is_owner:
        return True

    if capability in (Capability.VIEW_OVERVIEW, Capability.VIEW_SERVERS):
        return True

    if capability is Capability.CREATE_PANEL:
        if principal.tier is None:
            return False
        return server is None or server in principal.access

    if capability is Capability.VIEW_USERS:
        return tier_rank(principal.tier) >= tier_rank(USERS_MIN_TIER)

    # MANAGE_TIERS, VIEW_SETTINGS, MODIFY_USERS: только владелец
    return False


def permissions_for(principal: Principal) -> dict[str, bool]:
    """Карта прав для фронтенда."""
    return {capability.value: is_allowed(principal, capability) for capability in Capability}
