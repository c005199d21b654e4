# -*- coding: utf-8 -*-
"""
Модуль аутентификации дашборда.

Содержит:
- tokens: Подписанная cookie сессии (JWT)
- sessions: Серверное хранилище сессий
- throttling: Блокировка перебора и ограничение частоты запросов
- dependencies: FastAPI зависимости для авторизации
"""

from dashboard.backend.auth.dependencies import (
    CurrentUser,
    get_current_user,
    rate_limit,
    require,
    require_session,
)
from dashboard.backend.auth.sessions import SessionData, SessionStore
from dashboard.backend.auth.throttling import FixedWindowRateLimiter, LoginAttemptTracker
from dashboard.backend.auth.tokens import create_session_token, verify_session_token

__all__ = [
    # Tokens
    "create_session_token",
    "verify_session_token",
    # Sessions
    "SessionData",
    "SessionStore",
    # Throttling
    "FixedWindowRateLimiter",
    "LoginAttemptTracker",
    # Dependencies
    "CurrentUser",
    "get_current_user",
    "rate_limit",
    "require",
    "require_session",
]
