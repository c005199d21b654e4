# -*- coding: utf-8 -*-
"""
Pydantic схемы для аутентификации в дашборде.
"""

from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Базовая схема: поля в JSON в camelCase, как ожидает фронтенд."""
    model_config = ConfigDict(populate_by_name=True)


# ==================== Запросы ====================

class LoginRequest(CamelModel):
    """
    Запрос на вход по Telegram ID.

    Поля не валидируются схемой: формат проверяет обработчик входа,
    чтобы любой некорректный ввод считался неудачной попыткой.
    """
    identifier: Any = Field(
        None,
        validation_alias=AliasChoices("identifier", "telegramId"),
        description="Telegram ID пользователя (6-15 цифр)",
    )
    remember_me: Any = Field(
        False,
        validation_alias=AliasChoices("rememberMe", "remember"),
        description="Запомнить сессию на 30 дней",
    )

    @property
    def telegram_id(self) -> Optional[str]:
        """ID без пробелов по краям. Telegram ID может прийти числом."""
        value = self.identifier
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return None

    @property
    def remember(self) -> bool:
        return self.remember_me is True


# ==================== Ответы ====================

class UserInfo(CamelModel):
    """Снимок прав пользователя из сессии."""
    id: str = Field(..., description="Telegram ID")
    tier: Optional[str] = Field(None, description="Тир (None — без тира)")
    is_owner: bool = Field(False, alias="isOwner", description="Владелец бота")
    access: list[str] = Field(default_factory=list, description="Доступные серверы")


class LoginResponse(CamelModel):
    """Ответ на успешный вход."""
    success: bool = True
    message: str = "Вход выполнен"
    user: UserInfo
    csrf_token: str = Field(..., alias="csrfToken", description="CSRF токен сессии")


class AuthCheckResponse(CamelModel):
    """Текущая сессия."""
    authenticated: bool = True
    user_id: str = Field(..., alias="userId")
    username: str
    tier: Optional[str] = None
    is_owner: bool = Field(False, alias="isOwner")
    access: list[str] = Field(default_factory=list)
    permissions: dict[str, bool] = Field(default_factory=dict, description="Карта прав для интерфейса")


class PermissionsResponse(CamelModel):
    """Карта прав текущего пользователя."""
    success: bool = True
    permissions: dict[str, bool]


class CsrfTokenResponse(CamelModel):
    csrf_token: str = Field(..., alias="csrfToken")


class StatusResponse(CamelModel):
    success: bool = True
    message: str = ""
