# -*- coding: utf-8 -*-
"""
Утилиты безопасности дашборда.

Содержит функции для:
- Валидации пользовательского ввода
- Определения адреса клиента
- Маскировки чувствительных данных в логах
- Генерации случайных токенов и паролей
"""

import hashlib
import re
import secrets
import string
from typing import Collection, Optional

from fastapi import Request

TELEGRAM_ID_PATTERN = re.compile(r"^[0-9]{6,15}$")
PANEL_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,20}$")

PASSWORD_ALPHABET = string.ascii_lowercase + string.digits


def is_valid_telegram_id(value: Optional[str]) -> bool:
    """Telegram ID: только цифры, от 6 до 15 знаков."""
    return isinstance(value, str) and TELEGRAM_ID_PATTERN.fullmatch(value) is not None


def get_client_ip(request: Request, trusted_proxies: Collection[str] = ()) -> str:
    """
    Адрес клиента.

    X-Forwarded-For учитывается, только если соединение пришло от
    доверенного прокси. Берётся крайний справа адрес, не являющийся
    доверенным прокси: всё левее него клиент мог подставить сам.
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer

    forwarded_for = request.headers.get("X-Forwarded-For", "")
    hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return peer


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """
    Маскирует чувствительные данные для логирования.

    Args:
        data: Данные для маскировки
        visible_chars: Количество видимых символов в начале и конце

    Returns:
        Замаскированная строка
    """
    if not data or len(data) <= visible_chars * 2:
        return "*" * len(data) if data else ""

    return f"{data[:visible_chars]}{'*' * (len(data) - visible_chars * 2)}{data[-visible_chars:]}"


def hash_token(token: str) -> str:
    """SHA-256 хэш токена (для хранения идентификаторов сессий)."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_token_string(length: int = 32) -> str:
    """
    Генерирует криптографически безопасную случайную строку.

    Args:
        length: Длина в байтах (hex-результат в 2 раза длиннее)
    """
    return secrets.token_hex(length)


def generate_csrf_token() -> str:
    """Генерирует CSRF токен."""
    return secrets.token_hex(32)


def generate_panel_password(name: str, suffix_length: int = 6) -> str:
    """Пароль для нового аккаунта панели: имя и случайный суффикс."""
    suffix = "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(suffix_length))
    return f"{name}{suffix}"
