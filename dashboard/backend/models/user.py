# -*- coding: utf-8 -*-
"""
Pydantic схемы для управления пользователями и тирами.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator

from dashboard.backend.models.auth import CamelModel
from dashboard.backend.utils.security import TELEGRAM_ID_PATTERN

ServerKey = Literal["srv1", "srv2", "srv3"]
TierName = Literal["", "RESELLER", "ADP", "OWN", "PT", "TK", "CEO"]

USER_ID_PATTERN = TELEGRAM_ID_PATTERN.pattern


# ==================== Запросы ====================

class UserUpdateRequest(CamelModel):
    """Замена тира и доступа пользователя (пустой тир удаляет его)."""
    user_id: str = Field(..., alias="userId", pattern=USER_ID_PATTERN, description="Telegram ID")
    tier: Optional[TierName] = Field(None, description="Новый тир")
    access: list[ServerKey] = Field(..., description="Серверы, к которым будет доступ")

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v.strip() if isinstance(v, str) else v


class UserDeleteRequest(CamelModel):
    """Удаление пользователя из реестров."""
    user_id: str = Field(..., alias="userId", pattern=USER_ID_PATTERN, description="Telegram ID")

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v.strip() if isinstance(v, str) else v


# ==================== Ответы ====================

class UserListItem(CamelModel):
    id: str
    tier: Optional[str] = None
    access: list[str] = Field(default_factory=list)
    is_owner: bool = Field(False, alias="isOwner")


class UserListResponse(CamelModel):
    """Список пользователей бота."""
    success: bool = True
    total: int = Field(..., description="Всего пользователей")
    with_tier: int = Field(..., alias="withTier", description="Пользователей с тиром")
    users: list[UserListItem]


class TierRecordItem(CamelModel):
    user_id: str = Field(..., alias="userId")
    tier: str
    created_at: Optional[str] = Field(None, alias="createdAt")


class TierListResponse(CamelModel):
    """Тиры: ID пользователей по тирам (в порядке тиров) и записи."""
    success: bool = True
    order: list[str]
    tiers: dict[str, list[str]]
    records: list[TierRecordItem]
    conflicts: list[str] = Field(default_factory=list, description="ID с противоречивыми записями о тире")
