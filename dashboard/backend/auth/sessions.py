# -*- coding: utf-8 -*-
"""
Серверные сессии дашборда.

Сессии живут в памяти процесса и теряются при перезапуске. В хранилище
лежит SHA-256 идентификатора сессии, сам идентификатор знает только
cookie клиента. При входе тир, доступ и статус владельца копируются в
сессию и дальше не перечитываются, пока сессию явно не обновят.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from dashboard.backend.services.permissions import Principal
from dashboard.backend.utils.security import generate_csrf_token, generate_token_string, hash_token

logger = logging.getLogger("dashboard.auth.sessions")


@dataclass
class SessionData:
    """
    Данные одной сессии.

    Атрибуты:
        principal: снимок прав пользователя на момент входа (или обновления)
        csrf_token: токен защиты от CSRF, привязанный к сессии
        created_at: время создания (unix)
        expires_at: время истечения (unix)
        remember: сессия создана с "запомнить меня"
    """

    principal: Principal
    csrf_token: str = field(default_factory=generate_csrf_token)
    created_at: float = 0.0
    expires_at: float = 0.0
    remember: bool = False

    @property
    def user_id(self) -> str:
        return self.principal.user_id


class SessionStore:
    """
    Хранилище сессий в памяти.

    Args:
        ttl: время жизни обычной сессии
        remember_ttl: время жизни сессии с "запомнить меня"
        clock: источник времени (подменяется в тестах)
    """

    def __init__(
        self,
        ttl: timedelta,
        remember_ttl: timedelta,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.remember_ttl = remember_ttl
        self.clock = clock
        self._sessions: dict[str, SessionData] = {}
        self._lock = threading.Lock()

    def lifetime(self, remember: bool) -> timedelta:
        return self.remember_ttl if remember else self.ttl

    def create(self, principal: Principal, remember: bool = False) -> tuple[str, SessionData]:
        """
        Создаёт новую сессию.

        Returns:
            Кортеж (session_id, session). session_id отдаётся только клиенту.
        """
        session_id = generate_token_string(32)
        now = self.clock()
        session = SessionData(
            principal=principal,
            created_at=now,
            expires_at=now + self.lifetime(remember).total_seconds(),
            remember=remember,
        )
        with self._lock:
            self._purge_expired(now)
            self._sessions[hash_token(session_id)] = session
        return session_id, session

    def get(self, session_id: Optional[str]) -> Optional[SessionData]:
        """Возвращает живую сессию или None."""
        if not session_id:
            return None
        key = hash_token(session_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return None
            if session.expires_at <= self.clock():
                del self._sessions[key]
                return None
            return session

    def destroy(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with self._lock:
            return self._sessions.pop(hash_token(session_id), None) is not None

    def ensure_csrf_token(self, session: SessionData) -> str:
        with self._lock:
            if not session.csrf_token:
                session.csrf_token = generate_csrf_token()
            return session.csrf_token

    def update_principal(self, session_id: str, principal: Principal) -> Optional[SessionData]:
        """Заменяет снимок прав в сессии."""
        key = hash_token(session_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return None
            session.principal = principal
            return session

    def refresh_user(self, user_id: str, principal: Optional[Principal]) -> int:
        """
        Обновляет снимок во всех сессиях пользователя.

        principal=None завершает сессии (пользователь больше не существует).
        Возвращает количество затронутых сессий.
        """
        user_id = str(user_id)
        with self._lock:
            keys = [k for k, s in self._sessions.items() if s.user_id == user_id]
            for key in keys:
                if principal is None:
                    del self._sessions[key]
                else:
                    self._sessions[key].principal = principal
        if keys:
            action = "завершено" if principal is None else "обновлено"
            logger.info(f"Сессий пользователя {user_id} {action}: {len(keys)}")
        return len(keys)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, s in self._sessions.items() if s.expires_at <= now]
        for key in expired:
            del self._sessions[key]
