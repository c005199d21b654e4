# -*- coding: utf-8 -*-
"""
Pydantic модели (схемы) дашборда.

Содержит:
- auth: Вход, сессия, CSRF
- user: Пользователи и тиры
- panel: Создание панелей
- stats: Обзор, серверы, настройки
"""

from dashboard.backend.models.auth import (
    AuthCheckResponse,
    CsrfTokenResponse,
    LoginRequest,
    LoginResponse,
    PermissionsResponse,
    StatusResponse,
    UserInfo,
)
from dashboard.backend.models.user import (
    TierListResponse,
    UserDeleteRequest,
    UserListResponse,
    UserUpdateRequest,
)
from dashboard.backend.models.panel import (
    PanelCreateRequest,
    PanelCreateResponse,
)
from dashboard.backend.models.stats import (
    DashboardStats,
    ServerInfo,
    SettingsInfoResponse,
)

__all__ = [
    # Auth
    "AuthCheckResponse",
    "CsrfTokenResponse",
    "LoginRequest",
    "LoginResponse",
    "PermissionsResponse",
    "StatusResponse",
    "UserInfo",
    # User
    "TierListResponse",
    "UserDeleteRequest",
    "UserListResponse",
    "UserUpdateRequest",
    # Panel
    "PanelCreateRequest",
    "PanelCreateResponse",
    # Stats
    "DashboardStats",
    "ServerInfo",
    "SettingsInfoResponse",
]
