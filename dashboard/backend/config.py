# -*- coding: utf-8 -*-
"""
Конфигурация дашборда.

Настройки загружаются из переменных окружения (и файла .env).
Использует Pydantic Settings для валидации. Объект настроек неизменяемый:
создаётся один раз при старте и передаётся всем компонентам явно.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

# Значение-заглушка, которым бот помечает ненастроенный сервер
PLACEHOLDER = "-"

# Фиксированный набор серверов (порядок важен для вывода)
SERVER_KEYS = ("srv1", "srv2", "srv3")


class ServerConfig(BaseModel):
    """Настройки одного сервера Pterodactyl."""
    model_config = {"frozen": True}

    key: str
    name: str
    domain: str = ""
    api_key: str = ""

    @property
    def is_configured(self) -> bool:
        """Сервер считается настроенным, только если заданы и домен, и ключ."""
        return _is_set(self.domain) and _is_set(self.api_key)

    @property
    def has_domain(self) -> bool:
        return _is_set(self.domain)

    @property
    def has_api_key(self) -> bool:
        return _is_set(self.api_key)

    @property
    def base_url(self) -> str:
        domain = self.domain.strip().rstrip("/")
        if not domain.startswith(("http://", "https://")):
            domain = f"https://{domain}"
        return domain


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value.strip() != PLACEHOLDER


class DashboardSettings(BaseSettings):
    """
    Настройки дашборда.

    Переменные окружения без префикса, регистр не важен.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # === Основные настройки ===

    APP_NAME: str = "Panel Reseller Dashboard"
    APP_VERSION: str = "1.0.0"

    # Режим отладки (включает /api/docs)
    DEBUG: bool = False

    # === Сервер ===

    DASHBOARD_HOST: str = "0.0.0.0"
    DASHBOARD_PORT: int = 5000

    # CORS разрешённые домены (через запятую)
    DASHBOARD_CORS_ORIGINS: str = "http://localhost:5000"

    # Каталог с собранным фронтендом (login.html, dashboard.html)
    PUBLIC_DIR: str = "public"

    # === Хранилище ===

    # Каталог базы бота: tier.json и servers/srv*.json
    DATA_DIR: str = "database"

    # === Бот ===

    # Telegram ID владельцев (через запятую)
    OWNER_IDS: str = ""

    BOT_NAME: str = "Bot"
    BOT_VERSION: str = "1.0"
    OWNER_NAME: str = "Owner"

    # === Серверы Pterodactyl ===

    SRV1_DOMAIN: str = PLACEHOLDER
    SRV1_API_KEY: str = PLACEHOLDER
    SRV2_DOMAIN: str = PLACEHOLDER
    SRV2_API_KEY: str = PLACEHOLDER
    SRV3_DOMAIN: str = PLACEHOLDER
    SRV3_API_KEY: str = PLACEHOLDER

    # Таймаут запросов к API панели (секунды)
    PANEL_API_TIMEOUT: float = 15.0

    # Домен для email создаваемых аккаунтов
    PANEL_EMAIL_DOMAIN: str = "panel.com"

    # === Сессии ===

    # Секрет для подписи cookie сессии (ОБЯЗАТЕЛЬНО сменить в продакшене!)
    SESSION_SECRET: str = "CHANGE_ME_IN_PRODUCTION_super_secret_key_32_chars"
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "dashboard_session"

    # Включить в продакшене за HTTPS
    SESSION_COOKIE_SECURE: bool = False

    # Время жизни сессии (часы) и сессии с "запомнить меня" (дни)
    SESSION_TTL_HOURS: int = 24
    SESSION_REMEMBER_DAYS: int = 30

    # === Безопасность ===

    # Неудачных попыток входа до блокировки
    LOGIN_MAX_ATTEMPTS: int = 5

    # Время блокировки после превышения попыток (минуты)
    LOGIN_LOCKOUT_MINUTES: int = 15

    # Адреса обратных прокси, которым доверяем X-Forwarded-For (через запятую).
    # Без них клиент определяется только по адресу соединения.
    TRUSTED_PROXIES: str = ""

    # Ограничение частоты запросов на вход
    LOGIN_RATE_LIMIT: int = 20
    LOGIN_RATE_WINDOW_SECONDS: int = 15 * 60

    # Ограничение частоты запросов к остальному API
    API_RATE_LIMIT: int = 30
    API_RATE_WINDOW_SECONDS: int = 60

    # === Логирование ===

    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/dashboard.log"
    LOG_MAX_SIZE_MB: int = 50
    LOG_BACKUP_COUNT: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        """Возвращает список разрешённых CORS origins."""
        return [origin.strip() for origin in self.DASHBOARD_CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def owner_ids(self) -> frozenset[str]:
        """Telegram ID владельцев как строки."""
        return frozenset(
            owner.strip() for owner in self.OWNER_IDS.split(",") if owner.strip()
        )

    @property
    def trusted_proxies(self) -> frozenset[str]:
        return frozenset(
            proxy.strip() for proxy in self.TRUSTED_PROXIES.split(",") if proxy.strip()
        )

    @property
    def servers(self) -> dict[str, ServerConfig]:
        """Настройки серверов в фиксированном порядке srv1..srv3."""
        return {
            key: ServerConfig(
                key=key,
                name=f"Server {index}",
                domain=getattr(self, f"SRV{index}_DOMAIN").strip(),
                api_key=getattr(self, f"SRV{index}_API_KEY").strip(),
            )
            for index, key in enumerate(SERVER_KEYS, start=1)
        }

    def is_owner(self, user_id: str) -> bool:
        return str(user_id) in self.owner_ids


@lru_cache()
def get_settings() -> DashboardSettings:
    """
    Получает singleton экземпляр настроек.

    Кэшируется: настройки читаются один раз при старте.
    """
    return DashboardSettings()
