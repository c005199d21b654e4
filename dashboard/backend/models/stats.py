# -*- coding: utf-8 -*-
"""
Pydantic схемы для обзора и настроек.
"""

from typing import Optional
from pydantic import Field

from dashboard.backend.models.auth import CamelModel


class DashboardStats(CamelModel):
    """Обзорная статистика."""
    servers: int = Field(..., description="Настроенных серверов")
    users: int = Field(..., description="Пользователей с доступом к серверам")
    with_tier: int = Field(..., alias="withTier", description="Пользователей с тиром")
    tier: Optional[str] = Field(None, description="Тир текущего пользователя")


class ServerInfo(CamelModel):
    key: str
    name: str
    domain: str
    status: str = "active"
    users: int = Field(..., description="Пользователей с доступом")
    has_access: bool = Field(..., alias="hasAccess", description="Есть ли доступ у текущего пользователя")


class ServerSettingsInfo(CamelModel):
    """Сервер в настройках. Ключ API не раскрывается."""
    domain: str
    active: bool
    has_api_key: bool = Field(..., alias="hasApiKey")


class BotInfo(CamelModel):
    name: str
    version: str
    owner: str


class SettingsInfoResponse(CamelModel):
    success: bool = True
    servers: dict[str, ServerSettingsInfo]
    bot_info: BotInfo = Field(..., alias="botInfo")
