# -*- coding: utf-8 -*-
"""
Настройка логирования дашборда.

Все логи идут в консоль и в файл с ротацией. События аудита
(изменения пользователей владельцем) дополнительно пишутся в отдельный
файл рядом с основным: <имя>.audit.log.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any

from dashboard.backend.config import DashboardSettings

AUDIT_LOGGER = "dashboard.audit"


class ReloadNoiseFilter(logging.Filter):
    """Отбрасывает сообщения hot-reload вида «1 change detected»."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return "change detected" not in record.getMessage().lower()


def audit_log_path(log_file: Path) -> Path:
    return log_file.with_name(f"{log_file.stem}.audit{log_file.suffix or '.log'}")


def _rotating_file(settings: DashboardSettings, filename: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "standard",
        "filename": str(filename),
        "maxBytes": settings.LOG_MAX_SIZE_MB * 1024 * 1024,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "delay": True,
        "filters": ["reload_noise"],
    }


def build_logging_config(settings: DashboardSettings) -> dict[str, Any]:
    """Словарь для dictConfig по настройкам дашборда."""
    log_file = Path(settings.LOG_FILE)
    level = settings.LOG_LEVEL.upper()

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "reload_noise": {"()": ReloadNoiseFilter},
        },
        "formatters": {
            "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "short": {"format": "%(levelname)s: %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "short",
                "filters": ["reload_noise"],
            },
            "file": _rotating_file(settings, log_file, "DEBUG"),
            "audit_file": _rotating_file(settings, audit_log_path(log_file), "INFO"),
        },
        "root": {"handlers": ["console", "file"], "level": level},
        "loggers": {
            # uvicorn.error наследует хэндлеры uvicorn, у uvicorn.access они свои
            "uvicorn": {"handlers": ["console", "file"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["console", "file"], "level": level, "propagate": False},
            AUDIT_LOGGER: {"handlers": ["audit_file"], "level": "INFO", "propagate": True},
            # Запросы к API панели видны только при ошибках
            "httpx": {"handlers": ["file"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging(settings: DashboardSettings) -> None:
    Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings))
