"""
Реестр доступа пользователей к серверам.

Для каждого сервера бот хранит файл `servers/<srv>.json` со списком
Telegram ID. Доступ пользователя — это множество серверов, в списке
которых он есть.
"""

from __future__ import annotations

import logging
from typing import Iterable

from dashboard.backend.config import SERVER_KEYS
from dashboard.backend.database import JsonStore
from dashboard.backend.errors import StorageError, ValidationFailed

logger = logging.getLogger("dashboard.services.access")


def server_file(server: str) -> str:
    return f"servers/{server}.json"


def _members(raw, server: str) -> list[str]:
    """Нормализует список участников: строки, без повторов, порядок сохраняется."""
    if not isinstance(raw, list):
        logger.error(f"{server_file(server)}: ожидался список")
        raise StorageError()
    return list(dict.fromkeys(str(m) for m in raw))


class AccessRegistry:
    """
    Чтение и изменение списков доступа к серверам.
    """

    def __init__(self, store: JsonStore, servers: Iterable[str] = SERVER_KEYS) -> None:
        self.store = store
        self.servers: tuple[str, ...] = tuple(servers)

    def members(self, server: str) -> list[str]:
        return _members(self.store.read(server_file(server), []), server)

    def get_access(self, user_id: str) -> frozenset[str]:
        """Множество серверов, к которым у пользователя есть доступ."""
        user_id = str(user_id)
        return frozenset(s for s in self.servers if user_id in self.members(s))

    def set_access(self, user_id: str, servers: Iterable[str]) -> frozenset[str]:
        """
        Полностью заменяет доступ пользователя.

        Пользователь удаляется из списка каждого сервера и добавляется
        обратно только туда, где он есть в `servers`.
        """
        user_id = str(user_id)
        target = frozenset(servers)
        unknown = target.difference(self.servers)
        if unknown:
            raise ValidationFailed("Неизвестный сервер")

        for server in self.servers:
            def mutate(raw, server=server) -> None:
                members = [m for m in _members(raw, server) if m != user_id]
                if server in target:
                    members.append(user_id)
                raw[:] = members

            self.store.update(server_file(server), [], mutate)

        logger.info(f"Доступ пользователя {user_id} обновлён: {sorted(target) or 'нет'}")
        return target

    def remove_user(self, user_id: str) -> None:
        """Удаляет пользователя из списков всех серверов."""
        self.set_access(user_id, ())

    def all_members(self) -> list[str]:
        """Все пользователи, у которых есть доступ хотя бы к одному серверу."""
        seen: dict[str, None] = {}
        for server in self.servers:
            seen.update(dict.fromkeys(self.members(server)))
        return list(seen)

    def member_count(self, server: str) -> int:
        return len(self.members(server))
