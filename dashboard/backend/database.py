# -*- coding: utf-8 -*-
"""
Файловое хранилище дашборда.

База бота — это набор JSON-файлов (tier.json, servers/srv*.json).
Файл всегда читается и перезаписывается целиком. Запись атомарная
(временный файл + os.replace), а чтение-изменение-запись одного файла
выполняется под отдельной блокировкой на файл.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from dashboard.backend.errors import StorageError

logger = logging.getLogger("dashboard.database")

T = TypeVar("T")


class JsonStore:
    """
    Хранилище JSON-документов в каталоге `root`.

    Имена документов — относительные пути (например, "servers/srv1.json").
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def path(self, name: str) -> Path:
        return self.root / name

    def _lock_for(self, name: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.RLock()
            return lock

    # -------------------- чтение / запись --------------------
    def read(self, name: str, default: Any) -> Any:
        """
        Читает документ целиком.

        Отсутствующий файл возвращает `default`. Повреждённый файл — это
        ошибка: пустое значение затёрло бы данные при следующей записи.
        """
        file_path = self.path(name)
        if not file_path.exists():
            return default
        try:
            with file_path.open("r", encoding="utf-8") as fh:
                content = fh.read()
        except OSError as e:
            logger.error(f"Не удалось прочитать {file_path}: {e}")
            raise StorageError() from e

        if not content.strip():
            return default
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Повреждённый JSON в {file_path}: {e}")
            raise StorageError() from e

    def write(self, name: str, data: Any) -> None:
        """Атомарно перезаписывает документ."""
        file_path = self.path(name)
        with self._lock_for(name):
            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=str(file_path.parent), prefix=f".{file_path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as fh:
                        json.dump(data, fh, ensure_ascii=False, indent=2)
                    os.replace(tmp_name, file_path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as e:
                logger.error(f"Не удалось сохранить {file_path}: {e}")
                raise StorageError() from e

    def update(self, name: str, default: Any, mutate: Callable[[Any], T]) -> T:
        """
        Чтение-изменение-запись под блокировкой файла.

        `mutate` получает текущий документ, меняет его на месте и
        возвращает произвольный результат, который пробрасывается наружу.
        """
        with self._lock_for(name):
            data = self.read(name, default)
            result = mutate(data)
            self.write(name, data)
            return result
