# -*- coding: utf-8 -*-
"""
Защита от перебора.

- LoginAttemptTracker: счётчик неудачных входов по адресу клиента.
  После LOGIN_MAX_ATTEMPTS неудач подряд вход блокируется на время
  LOGIN_LOCKOUT_MINUTES, по истечении блокировка снимается сама.
  Успешный вход сбрасывает счётчик.
- FixedWindowRateLimiter: простой счётчик запросов в фиксированном окне,
  отдельный экземпляр на каждую группу роутов.

Всё хранится в памяти процесса и сбрасывается при перезапуске.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger("dashboard.auth.throttling")


@dataclass
class _Attempts:
    failures: int = 0
    window_start: float = 0.0
    locked_until: float = 0.0


class LoginAttemptTracker:
    """
    Состояния клиента: Anonymous -> (неудачи) -> Locked -> Anonymous.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        lockout_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self.clock = clock
        self._clients: dict[str, _Attempts] = {}
        self._lock = threading.Lock()

    def _state(self, client: str, now: float) -> _Attempts:
        state = self._clients.get(client)
        if state is None or self._is_stale(state, now):
            state = self._clients[client] = _Attempts(window_start=now)
        return state

    def _is_stale(self, state: _Attempts, now: float) -> bool:
        """Блокировка истекла или неудачи вышли за окно."""
        if state.locked_until:
            return now >= state.locked_until
        return now - state.window_start >= self.lockout_seconds

    def _purge_stale(self, now: float) -> None:
        stale = [c for c, s in self._clients.items() if self._is_stale(s, now)]
        for client in stale:
            del self._clients[client]

    def active_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def locked_for(self, client: str) -> int:
        """Сколько секунд осталось до снятия блокировки (0, если не заблокирован)."""
        now = self.clock()
        with self._lock:
            self._purge_stale(now)
            state = self._clients.get(client)
            if state is not None and state.locked_until > now:
                return max(1, math.ceil(state.locked_until - now))
            return 0

    def is_locked(self, client: str) -> bool:
        return self.locked_for(client) > 0

    def record_failure(self, client: str) -> int:
        """
        Учитывает неудачную попытку.

        Returns:
            Сколько попыток осталось до блокировки (0 — клиент заблокирован)
        """
        now = self.clock()
        with self._lock:
            self._purge_stale(now)
            state = self._state(client, now)
            state.failures += 1
            if state.failures >= self.max_attempts:
                state.locked_until = now + self.lockout_seconds
                logger.warning(
                    f"Клиент {client} заблокирован на {int(self.lockout_seconds // 60)} мин "
                    f"после {state.failures} неудачных попыток входа"
                )
                return 0
            return self.max_attempts - state.failures

    def record_success(self, client: str) -> None:
        with self._lock:
            self._clients.pop(client, None)


class FixedWindowRateLimiter:
    """
    Ограничение частоты запросов: не более `limit` запросов за `window_seconds`.
    """

    def __init__(
        self,
        name: str,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> int:
        """
        Учитывает запрос.

        Returns:
            0, если запрос разрешён, иначе секунды до конца окна
        """
        now = self.clock()
        with self._lock:
            self._purge_expired(now)
            start, count = self._windows.get(key, (now, 0))
            count += 1
            self._windows[key] = (start, count)
            if count > self.limit:
                return max(1, math.ceil(start + self.window_seconds - now))
            return 0

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def active_count(self) -> int:
        with self._lock:
            return len(self._windows)
