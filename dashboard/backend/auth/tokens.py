# -*- coding: utf-8 -*-
"""
Подписанные токены cookie сессии.

Cookie содержит JWT, в котором указан только идентификатор сессии (sid)
и срок действия. Данные сессии хранятся на сервере.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from dashboard.backend.config import DashboardSettings

TOKEN_TYPE = "session"


def create_session_token(
    settings: DashboardSettings,
    session_id: str,
    expires_delta: timedelta,
) -> str:
    """
    Создаёт JWT для cookie сессии.

    Args:
        settings: Настройки (секрет и алгоритм подписи)
        session_id: Идентификатор сессии в открытом виде
        expires_delta: Время жизни токена

    Returns:
        JWT токен
    """
    now = datetime.now(timezone.utc)
    to_encode = {
        "sid": session_id,
        "iat": now,
        "exp": now + expires_delta,
        "type": TOKEN_TYPE,
    }
    return jwt.encode(to_encode, settings.SESSION_SECRET, algorithm=settings.SESSION_ALGORITHM)


def verify_session_token(settings: DashboardSettings, token: str) -> Optional[str]:
    """
    Проверяет JWT из cookie.

    Returns:
        Идентификатор сессии или None, если токен невалидный или истёк
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.SESSION_SECRET,
            algorithms=[settings.SESSION_ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) and session_id else None
