# -*- coding: utf-8 -*-
"""
Pydantic схемы для создания панелей.
"""

from pydantic import AliasChoices, Field

from dashboard.backend.models.auth import CamelModel
from dashboard.backend.models.user import ServerKey
from dashboard.backend.utils.security import PANEL_NAME_PATTERN


class PanelCreateRequest(CamelModel):
    """Запрос на создание панели."""
    name: str = Field(..., pattern=PANEL_NAME_PATTERN.pattern, description="Имя пользователя панели")
    server: ServerKey = Field(..., description="Сервер")
    ram_limit: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("ramLimit", "ram"),
        description="Лимит памяти в МБ (0 — без лимита)",
    )


class PanelInfo(CamelModel):
    """Данные созданной панели. Пароль показывается один раз."""
    id: int
    username: str
    email: str
    password: str
    server: str
    ram_limit: int = Field(..., alias="ramLimit")


class PanelCreateResponse(CamelModel):
    success: bool = True
    message: str = "Панель создана"
    panel: PanelInfo
